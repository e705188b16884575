"""
ledger.py
---------
Immutable application state and the mutations the host applies to it:
adding, editing and deleting records, applying interpreter effects and
refreshing the derived goal estimates after each change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from budget_tracker.config import get_settings
from budget_tracker.dates import DateLike, as_date, month_bounds
from budget_tracker.models import (
    ChatMessage,
    CreateGoalEffect,
    Effect,
    Goal,
    PredictedIncome,
    Transaction,
    TransactionDraft,
    UpsertTransactionEffect,
    new_id,
)
from budget_tracker.projection import project_goals


@dataclass(frozen=True)
class LedgerState:
    transactions: Tuple[Transaction, ...] = ()
    goals: Tuple[Goal, ...] = ()
    predicted_income: Tuple[PredictedIncome, ...] = ()
    currency: str = field(default_factory=lambda: get_settings().default_currency)
    chat_history: Tuple[ChatMessage, ...] = ()


# --- Transactions ---

def add_transactions(
    state: LedgerState,
    drafts: Iterable[TransactionDraft],
    id_factory: Callable[[], str] = new_id,
) -> LedgerState:
    """Append drafts (e.g. a statement import) with freshly assigned ids."""
    added = tuple(d.with_id(id_factory()) for d in drafts)
    return replace(state, transactions=state.transactions + added)


def upsert_transaction(state: LedgerState, transaction: Transaction) -> LedgerState:
    """Replace the transaction with the same id, or append it."""
    if any(t.id == transaction.id for t in state.transactions):
        txns = tuple(transaction if t.id == transaction.id else t for t in state.transactions)
    else:
        txns = state.transactions + (transaction,)
    return replace(state, transactions=txns)


def delete_transaction(state: LedgerState, transaction_id: str) -> LedgerState:
    return replace(state, transactions=tuple(t for t in state.transactions if t.id != transaction_id))


# --- Goals ---

def add_goal(
    state: LedgerState,
    name: str,
    target_amount: float,
    deadline: Optional[DateLike] = None,
    id_factory: Callable[[], str] = new_id,
) -> Tuple[LedgerState, Goal]:
    goal = Goal(
        id=id_factory(),
        name=name,
        target_amount=target_amount,
        current_amount=0,
        deadline=as_date(deadline) if deadline else None,
    )
    return replace(state, goals=state.goals + (goal,)), goal


def update_goal(state: LedgerState, goal: Goal) -> LedgerState:
    """Replace a goal by id. The estimate is never taken from the caller."""
    cleared = goal.model_copy(update={"estimated_completion_date": None})
    return replace(state, goals=tuple(cleared if g.id == goal.id else g for g in state.goals))


def delete_goal(state: LedgerState, goal_id: str) -> LedgerState:
    return replace(state, goals=tuple(g for g in state.goals if g.id != goal_id))


# --- Predicted income ---

def add_predicted_income(
    state: LedgerState,
    date: DateLike,
    source: str,
    amount: float,
    id_factory: Callable[[], str] = new_id,
) -> LedgerState:
    income = PredictedIncome(id=id_factory(), date=as_date(date), source=source, amount=amount)
    return replace(state, predicted_income=state.predicted_income + (income,))


def delete_predicted_income(state: LedgerState, income_id: str) -> LedgerState:
    return replace(state, predicted_income=tuple(p for p in state.predicted_income if p.id != income_id))


# --- Settings / chat ---

def set_currency(state: LedgerState, currency: str) -> LedgerState:
    return replace(state, currency=currency.upper())


def set_chat_history(state: LedgerState, history: Iterable[ChatMessage]) -> LedgerState:
    return replace(state, chat_history=tuple(history))


# --- Derived state ---

def apply_effect(state: LedgerState, effect: Optional[Effect]) -> LedgerState:
    if effect is None:
        return state
    if isinstance(effect, CreateGoalEffect):
        return replace(state, goals=state.goals + (effect.goal,))
    if isinstance(effect, UpsertTransactionEffect):
        return upsert_transaction(state, effect.transaction)
    raise TypeError(f"Unsupported effect: {effect!r}")


def refresh_goals(state: LedgerState, now: DateLike) -> Tuple[LedgerState, bool]:
    """Recompute goal estimates; the flag tells whether anything changed."""
    goals = tuple(project_goals(state.goals, state.transactions, now))
    if goals == state.goals:
        return state, False
    return replace(state, goals=goals), True


def balance_summary(transactions: Iterable[Transaction], now: DateLike) -> Dict[str, float]:
    """Current balance plus this month's income and expenses."""
    month_start, month_end = month_bounds(now)
    balance = 0.0
    income = 0.0
    expenses = 0.0
    for t in transactions:
        balance += t.amount
        if month_start <= t.date <= month_end:
            if t.amount > 0:
                income += t.amount
            else:
                expenses += t.amount
    return {"balance": balance, "monthly_income": income, "monthly_expenses": abs(expenses)}


def goals_by_eta(goals: Iterable[Goal]) -> List[Goal]:
    """Goals ordered by estimated completion, goals without one last."""
    return sorted(goals, key=lambda g: (g.estimated_completion_date is None, g.estimated_completion_date))
