"""
cli.py
------
Command line access to the budget tracker store: import a bank statement,
send a chat command, list goals with their estimated completion dates.
"""

from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path
from typing import List, Optional

from budget_tracker.amounts import format_currency
from budget_tracker.importer import FixedEncoding, import_statement
from budget_tracker.interpreter import InterpreterContext, handle_command
from budget_tracker.ledger import (
    add_transactions,
    apply_effect,
    balance_summary,
    goals_by_eta,
    refresh_goals,
    set_chat_history,
)
from budget_tracker.logging_setup import setup_logging
from budget_tracker.storage import KeyValueStore, load_state, save_state


def cmd_import(args: argparse.Namespace, store: KeyValueStore) -> None:
    state = load_state(store)
    detector = FixedEncoding(args.encoding) if args.encoding else None
    result = import_statement(Path(args.file).read_bytes(), (args.currency or state.currency).upper(), detector)

    state = add_transactions(state, result.accepted)
    state, _ = refresh_goals(state, date.today())
    save_state(store, state)
    print(f"Imported {len(result.accepted)} transactions, skipped {result.skipped} rows ({result.encoding}).")


def cmd_ask(args: argparse.Namespace, store: KeyValueStore) -> None:
    state = load_state(store)
    context = InterpreterContext(transactions=state.transactions, currency=state.currency, now=date.today())
    result, history = handle_command(" ".join(args.text), context, state.chat_history)

    state = set_chat_history(apply_effect(state, result.effect), history)
    state, _ = refresh_goals(state, date.today())
    save_state(store, state)
    print(result.response)


def cmd_goals(args: argparse.Namespace, store: KeyValueStore) -> None:
    state, changed = refresh_goals(load_state(store), date.today())
    if changed:
        save_state(store, state)
    if not state.goals:
        print("No goals set yet.")
        return
    for goal in goals_by_eta(state.goals):
        eta = goal.estimated_completion_date.strftime("%b %Y") if goal.estimated_completion_date else "N/A"
        target = format_currency(goal.target_amount, state.currency)
        print(f"{goal.name}: {target} (ETA {eta})")


def cmd_summary(args: argparse.Namespace, store: KeyValueStore) -> None:
    state = load_state(store)
    summary = balance_summary(state.transactions, date.today())
    print(f"Current Balance: {format_currency(summary['balance'], state.currency)}")
    print(
        f"This Month: Income {format_currency(summary['monthly_income'], state.currency)}, "
        f"Expenses {format_currency(summary['monthly_expenses'], state.currency)}"
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Personal budget tracker")
    parser.add_argument("--database-url", type=str, default=None, help="Override DATABASE_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import a bank statement CSV")
    p_import.add_argument("file", type=str, help="Path to the CSV export")
    p_import.add_argument("--currency", type=str, default=None, help="Only import rows in this currency")
    p_import.add_argument("--encoding", type=str, default=None, help="Skip detection and use this encoding")
    p_import.set_defaults(func=cmd_import)

    p_ask = sub.add_parser("ask", help="Send a chat command")
    p_ask.add_argument("text", nargs="+", help="e.g. add expense 500 for groceries tomorrow")
    p_ask.set_defaults(func=cmd_ask)

    p_goals = sub.add_parser("goals", help="List goals with estimated completion dates")
    p_goals.set_defaults(func=cmd_goals)

    p_summary = sub.add_parser("summary", help="Show balance and this month's totals")
    p_summary.set_defaults(func=cmd_summary)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging()
    store = KeyValueStore(url=args.database_url)
    args.func(args, store)


if __name__ == "__main__":
    main()
