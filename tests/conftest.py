"""Pytest fixtures for testing"""

import os

# Keep tests hermetic: in-memory database, no artificial chat delay.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RESPONSE_DELAY_SECONDS"] = "0"

import itertools
from datetime import date
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from budget_tracker.interpreter import InterpreterContext
from budget_tracker.models import Transaction
from budget_tracker.server import app, get_store
from budget_tracker.storage import KeyValueStore

STATEMENT_HEADER = "Datum zaúčtování;Valuta;Typ operace;Popis operace;Částka;Měna"


@pytest.fixture
def now() -> date:
    return date(2025, 1, 10)  # a Friday


@pytest.fixture
def id_factory() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def make_txn() -> Callable[..., Transaction]:
    counter = itertools.count(1)

    def _make(day: date, amount: float, description: str = "Test", category: str = "Uncategorized") -> Transaction:
        return Transaction(
            id=f"t{next(counter)}",
            date=day,
            description=description,
            amount=amount,
            category=category,
        )

    return _make


@pytest.fixture
def context(now, id_factory) -> InterpreterContext:
    return InterpreterContext(transactions=(), currency="CZK", now=now, id_factory=id_factory)


@pytest.fixture
def statement_text() -> str:
    rows = [
        STATEMENT_HEADER,
        "05.01.2025;05.01.2025;Platba kartou;Albert Praha;-1 234,50;CZK",
        "06.01.2025;06.01.2025;Příchozí platba;Výplata;45 000,00;CZK",
        "07.01.2025;07.01.2025;Platba kartou;Amazon;-20,00;EUR",
        ";08.01.2025;Platba kartou;Bez data;-10,00;CZK",
        "09.01.2025;09.01.2025;Platba kartou;Chyba;abc;CZK",
    ]
    return "\n".join(rows) + "\n"


@pytest.fixture
def store() -> KeyValueStore:
    return KeyValueStore(url="sqlite://")


@pytest.fixture
def client(store: KeyValueStore) -> Iterator[TestClient]:
    """FastAPI test client backed by an in-memory store"""
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
