"""Tests for the command line entry point"""

import pytest

from budget_tracker import cli


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda: None)
    return f"sqlite:///{tmp_path / 'cli.db'}"


def run(db_url, *args):
    cli.main(["--database-url", db_url, *args])


def test_ask_and_summary(db_url, capsys):
    run(db_url, "ask", "received", "3000", "from", "salary")
    assert "OK, added income" in capsys.readouterr().out

    run(db_url, "summary")
    out = capsys.readouterr().out
    assert "Current Balance: 3 000,00 Kč" in out


def test_goals_listing(db_url, capsys):
    run(db_url, "goals")
    assert "No goals set yet." in capsys.readouterr().out

    run(db_url, "ask", "add goal Bike for 5000")
    run(db_url, "goals")
    assert "Bike: 5 000,00 Kč (ETA N/A)" in capsys.readouterr().out


def test_import_file(db_url, tmp_path, statement_text, capsys):
    path = tmp_path / "statement.csv"
    path.write_bytes(statement_text.encode("cp1250"))

    run(db_url, "import", str(path))
    assert "Imported 2 transactions, skipped 3 rows (cp1250)." in capsys.readouterr().out


def test_command_required(db_url):
    with pytest.raises(SystemExit):
        run(db_url)
