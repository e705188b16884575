"""
projection.py
-------------
Estimate when each savings goal will be reached from the recent net cash
flow. Everything here is a pure function of (goals, transactions, now), so
re-running it on unchanged input gives identical goals.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, List, Optional, Sequence

import pandas as pd
from dateutil.relativedelta import relativedelta

from budget_tracker.dates import DateLike, as_date
from budget_tracker.models import Goal, Transaction

logger = logging.getLogger(__name__)

LOOKBACK_MONTHS = 3


def transactions_to_df(transactions: Iterable[Transaction]) -> pd.DataFrame:
    df = pd.DataFrame([{"Date": t.date, "Amount": t.amount} for t in transactions], columns=["Date", "Amount"])
    df["Date"] = pd.to_datetime(df["Date"])
    return df


def savings_window_start(now: DateLike, lookback_months: int = LOOKBACK_MONTHS) -> date:
    """First day of the month ``lookback_months`` before the month of ``now``."""
    return as_date(now).replace(day=1) - relativedelta(months=lookback_months)


def average_monthly_savings(
    transactions: Iterable[Transaction],
    now: DateLike,
    lookback_months: int = LOOKBACK_MONTHS,
) -> float:
    """Net cash flow since the window start, spread over ``lookback_months``."""
    df = transactions_to_df(transactions)
    if df.empty:
        return 0.0

    recent = df[df["Date"] >= pd.Timestamp(savings_window_start(now, lookback_months))]
    income = recent[recent["Amount"] > 0]["Amount"].sum()
    expenses = recent[recent["Amount"] < 0]["Amount"].sum()
    return float((income + expenses) / lookback_months)


def project_goal(goal: Goal, monthly_savings: float, now: DateLike) -> Goal:
    today = as_date(now)
    remaining = goal.remaining
    if remaining == 0:
        # Already complete
        return goal.model_copy(update={"estimated_completion_date": today})
    if monthly_savings <= 0:
        return goal.model_copy(update={"estimated_completion_date": None})

    try:
        months_needed = math.ceil(round(remaining / monthly_savings, 9))
        estimate: Optional[date] = today + relativedelta(months=months_needed)
    except (OverflowError, ValueError):
        logger.warning("Goal %r is out of reach at %.2f a month", goal.name, monthly_savings)
        estimate = None
    return goal.model_copy(update={"estimated_completion_date": estimate})


def project_goals(goals: Sequence[Goal], transactions: Iterable[Transaction], now: DateLike) -> List[Goal]:
    """Recompute ``estimated_completion_date`` for every goal."""
    if not goals:
        return []
    monthly_savings = average_monthly_savings(transactions, now)
    return [project_goal(goal, monthly_savings, now) for goal in goals]
