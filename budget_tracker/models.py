"""Domain records and the transient value objects produced by the parsers."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

UNCATEGORIZED = "Uncategorized"


def new_id() -> str:
    return str(uuid.uuid4())


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# --- Persisted records ---

class TransactionDraft(_Record):
    """A transaction that has not been assigned an id yet."""

    date: dt.date
    description: str
    amount: float  # + for income, - for expense
    category: str = UNCATEGORIZED

    def with_id(self, transaction_id: str) -> "Transaction":
        return Transaction(id=transaction_id, **self.model_dump())


class Transaction(TransactionDraft):
    id: str


class Goal(_Record):
    id: str
    name: str
    target_amount: float = Field(alias="targetAmount", gt=0)
    current_amount: float = Field(default=0.0, alias="currentAmount", ge=0)
    deadline: Optional[dt.date] = None
    # Written only by the projection engine
    estimated_completion_date: Optional[dt.date] = Field(default=None, alias="estimatedCompletionDate")

    @property
    def remaining(self) -> float:
        return max(0.0, self.target_amount - self.current_amount)


class PredictedIncome(_Record):
    id: str
    date: dt.date
    source: str
    amount: float = Field(gt=0)


class ChatMessage(_Record):
    sender: Literal["user", "assistant"]
    text: str


# --- Interpreter output ---

class Intent(str, Enum):
    CREATE_GOAL = "CreateGoal"
    ADD_TRANSACTION = "AddTransaction"
    QUERY_SPENDING = "QuerySpending"
    UNKNOWN = "Unknown"


class Confidence(str, Enum):
    WELL_FORMED = "well-formed"
    PARTIAL = "partial"
    NONE = "none"


class ParsedCommand(_Record):
    intent: Intent
    entities: Dict[str, Any] = Field(default_factory=dict)
    confidence: Confidence = Confidence.NONE


class CreateGoalEffect(_Record):
    kind: Literal["create_goal"] = "create_goal"
    goal: Goal


class UpsertTransactionEffect(_Record):
    kind: Literal["upsert_transaction"] = "upsert_transaction"
    transaction: Transaction


Effect = Union[CreateGoalEffect, UpsertTransactionEffect]


class InterpretResult(_Record):
    command: ParsedCommand
    response: str
    effect: Optional[Effect] = None


# --- Importer output ---

class ImportRow(_Record):
    line: int
    transaction: Optional[TransactionDraft] = None
    skip_reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.transaction is not None


class ImportResult(_Record):
    accepted: List[TransactionDraft] = Field(default_factory=list)
    skipped: int = 0
    encoding: str = "utf-8"
    rows: List[ImportRow] = Field(default_factory=list)
