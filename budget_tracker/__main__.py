from budget_tracker.cli import main

main()
