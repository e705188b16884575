"""
storage.py
----------
Key-value persistence for the host application. Each key holds one JSON
document (the transaction list, the goal list, ...), stored in a single
SQLAlchemy table so the same code runs on SQLite or Postgres.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import Column, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from budget_tracker.config import get_settings
from budget_tracker.ledger import LedgerState
from budget_tracker.models import ChatMessage, Goal, PredictedIncome, Transaction

logger = logging.getLogger(__name__)

Base = declarative_base()

# Storage keys, one JSON document each
TRANSACTIONS_KEY = "transactions"
GOALS_KEY = "goals"
PREDICTED_INCOME_KEY = "predictedIncome"
CURRENCY_KEY = "selectedCurrency"
CHAT_HISTORY_KEY = "chatHistory"

# Unreadable values are kept under "<key>.unreadable" before being replaced
UNREADABLE_SUFFIX = ".unreadable"

_transactions = TypeAdapter(List[Transaction])
_goals = TypeAdapter(List[Goal])
_predicted_income = TypeAdapter(List[PredictedIncome])
_chat_history = TypeAdapter(List[ChatMessage])


class KVEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)


def make_engine(url: str) -> Engine:
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False} if "sqlite" in url else {})


class KeyValueStore:
    """Load/save text values by key."""

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None) -> None:
        self.engine = engine or make_engine(url or get_settings().database_url)
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def load(self, key: str) -> Optional[str]:
        with self.SessionLocal() as db:
            entry = db.get(KVEntry, key)
            return entry.value if entry else None

    def save(self, key: str, value: str) -> None:
        with self.SessionLocal() as db:
            db.merge(KVEntry(key=key, value=value))
            db.commit()

    def delete(self, key: str) -> None:
        with self.SessionLocal() as db:
            entry = db.get(KVEntry, key)
            if entry is not None:
                db.delete(entry)
                db.commit()


def _load_list(store: KeyValueStore, key: str, adapter: TypeAdapter) -> tuple:
    raw = store.load(key)
    if not raw:
        return ()
    try:
        return tuple(adapter.validate_json(raw))
    except ValidationError as exc:
        backup = key + UNREADABLE_SUFFIX
        store.save(backup, raw)
        logger.error("Stored %s could not be read, copied to %s and starting empty: %s", key, backup, exc)
        return ()


def load_state(store: KeyValueStore) -> LedgerState:
    return LedgerState(
        transactions=_load_list(store, TRANSACTIONS_KEY, _transactions),
        goals=_load_list(store, GOALS_KEY, _goals),
        predicted_income=_load_list(store, PREDICTED_INCOME_KEY, _predicted_income),
        currency=store.load(CURRENCY_KEY) or get_settings().default_currency,
        chat_history=_load_list(store, CHAT_HISTORY_KEY, _chat_history),
    )


def save_state(store: KeyValueStore, state: LedgerState) -> None:
    store.save(TRANSACTIONS_KEY, _transactions.dump_json(list(state.transactions), by_alias=True).decode())
    store.save(GOALS_KEY, _goals.dump_json(list(state.goals), by_alias=True).decode())
    store.save(PREDICTED_INCOME_KEY, _predicted_income.dump_json(list(state.predicted_income), by_alias=True).decode())
    store.save(CURRENCY_KEY, state.currency)
    store.save(CHAT_HISTORY_KEY, _chat_history.dump_json(list(state.chat_history), by_alias=True).decode())
