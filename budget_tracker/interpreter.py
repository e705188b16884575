"""
interpreter.py
--------------
Rule-based chat assistant. A command is matched against an ordered list of
intent rules (first match wins); the matching rule extracts its entities and
evaluates the command against the current transaction history. Evaluation
is pure: the caller applies the returned effect, if any.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from budget_tracker.amounts import extract_amount, format_currency
from budget_tracker.config import get_settings
from budget_tracker.dates import (
    TRAILING_DATE_PHRASE,
    DateLike,
    as_date,
    format_long_date,
    format_month_day,
    month_bounds,
    parse_explicit_date,
    resolve_date,
)
from budget_tracker.errors import UnrecognizedDateError
from budget_tracker.models import (
    UNCATEGORIZED,
    ChatMessage,
    Confidence,
    CreateGoalEffect,
    Goal,
    Intent,
    InterpretResult,
    ParsedCommand,
    Transaction,
    UpsertTransactionEffect,
    new_id,
)

logger = logging.getLogger(__name__)

DEFAULT_GOAL_NAME = "New Goal"
DEFAULT_DESCRIPTION = "Transaction"

CAPABILITY_SUMMARY = (
    "Sorry, I can currently help with adding goals (e.g., 'add goal Car for 100000 by 2026-12-31'), "
    "adding transactions (e.g., 'add expense 500 for groceries tomorrow'), "
    "or analyzing spending (e.g., 'how much did I spend on fuel last month?')."
)
GOAL_GUIDANCE = (
    "Sorry, I couldn't understand the goal details. Please specify a name and amount, "
    "like 'add goal New Car for 100000'. You can optionally add 'by YYYY-MM-DD'."
)
TRANSACTION_GUIDANCE = (
    "Sorry, I couldn't understand the amount or description for the transaction. "
    "Please try again, like 'add expense 500 for groceries tomorrow'."
)

_GOAL_NAME = re.compile(
    r"\b(?:goal|for|to buy) (.*?)(?: for | with | costing | of | target | deadline|$)",
    re.IGNORECASE,
)
_GOAL_DEADLINE = re.compile(r"\b(?:by|deadline) (.*?)$", re.IGNORECASE)
_SPENDING_KEYWORD = re.compile(r"\b(?:on|for) (.*?)(?: last month| this month)?$")
_DESCRIPTION = re.compile(r"\b(?:for|on|from)\s+(.+)$", re.IGNORECASE)
_DANGLING_CONNECTOR = re.compile(r"\s+(?:on|at|for)$", re.IGNORECASE)


@dataclass(frozen=True)
class InterpreterContext:
    """Everything a command is evaluated against."""

    transactions: Sequence[Transaction] = ()
    currency: str = "CZK"
    now: Optional[DateLike] = None
    id_factory: Callable[[], str] = new_id

    @property
    def today(self) -> date:
        return as_date(self.now) if self.now is not None else date.today()


@dataclass(frozen=True)
class IntentRule:
    intent: Intent
    matches: Callable[[str], bool]
    evaluate: Callable[[str, InterpreterContext], InterpretResult]


def _normalize(text: str) -> str:
    return " ".join(text.split()).strip(" ?!.")


# --- CreateGoal ---

def _is_create_goal(lowered: str) -> bool:
    return "create goal" in lowered or "add goal" in lowered


def _create_goal(text: str, context: InterpreterContext) -> InterpretResult:
    text = _normalize(text)
    name_match = _GOAL_NAME.search(text)
    name = name_match.group(1).strip() if name_match else ""
    name = name or DEFAULT_GOAL_NAME

    amount = extract_amount(text, name_match.end(1)) if name_match else None
    amount = amount or extract_amount(text)

    deadline: Optional[date] = None
    deadline_match = _GOAL_DEADLINE.search(text)
    if deadline_match:
        try:
            deadline = parse_explicit_date(deadline_match.group(1), context.today)
        except UnrecognizedDateError:
            logger.debug("Ignoring unparsable goal deadline %r", deadline_match.group(1))

    entities = {"name": name, "amount": amount.value if amount else None, "deadline": deadline}
    if amount and amount.currency:
        entities["currency"] = amount.currency

    if not amount or amount.value <= 0 or name.lower() == DEFAULT_GOAL_NAME.lower():
        command = ParsedCommand(intent=Intent.CREATE_GOAL, entities=entities, confidence=Confidence.PARTIAL)
        return InterpretResult(command=command, response=GOAL_GUIDANCE)

    goal = Goal(
        id=context.id_factory(),
        name=name,
        target_amount=amount.value,
        current_amount=0,
        deadline=deadline,
    )
    deadline_text = f" with a deadline of {format_long_date(deadline)}" if deadline else ""
    response = (
        f'OK, I\'ve added the goal "{goal.name}" for '
        f"{format_currency(goal.target_amount, context.currency)}{deadline_text}. "
        "I'll estimate the completion date."
    )
    command = ParsedCommand(intent=Intent.CREATE_GOAL, entities=entities, confidence=Confidence.WELL_FORMED)
    return InterpretResult(command=command, response=response, effect=CreateGoalEffect(goal=goal))


# --- QuerySpending ---

def _is_query_spending(lowered: str) -> bool:
    return "how much" in lowered and ("spend" in lowered or "spent" in lowered)


def _query_spending(text: str, context: InterpreterContext) -> InterpretResult:
    lowered = _normalize(text).lower()
    last_month = "last month" in lowered
    keyword_match = _SPENDING_KEYWORD.search(lowered)
    keyword = keyword_match.group(1).strip() if keyword_match else ""

    reference = context.today - relativedelta(months=1) if last_month else context.today
    month_start, month_end = month_bounds(reference)

    total = 0.0
    count = 0
    for t in context.transactions:
        if t.amount >= 0 or not (month_start <= t.date <= month_end):
            continue
        if keyword and keyword not in (t.category or "").lower() and keyword not in (t.description or "").lower():
            continue
        total += -t.amount
        count += 1

    time_frame = "last month" if last_month else "this month"
    spent = format_currency(total, context.currency)
    if keyword:
        if count:
            response = f'You spent {spent} on "{keyword}" {time_frame} across {count} transactions.'
        else:
            response = f'I couldn\'t find any spending related to "{keyword}" {time_frame}.'
    else:
        response = f"You spent a total of {spent} {time_frame}."

    entities = {
        "keyword": keyword or None,
        "period": time_frame,
        "month": month_start,
        "total": total,
        "count": count,
    }
    command = ParsedCommand(intent=Intent.QUERY_SPENDING, entities=entities, confidence=Confidence.WELL_FORMED)
    return InterpretResult(command=command, response=response)


# --- AddTransaction ---

def _is_add_transaction(lowered: str) -> bool:
    return any(k in lowered for k in ("add expense", "add income", "spent", "received"))


def _split_trailing_date(text: str, today: date) -> Tuple[str, date, Optional[str]]:
    """Cut a trailing date phrase off the command and resolve it."""
    match = TRAILING_DATE_PHRASE.search(text)
    if not match:
        return text, today, None

    phrase = match.group(1)
    try:
        when = resolve_date(phrase, today)
    except UnrecognizedDateError:
        logger.debug("Unrecognized date %r, using today", phrase)
        return text, today, None
    return _DANGLING_CONNECTOR.sub("", text[: match.start(1)].rstrip()), when, phrase


def _add_transaction(text: str, context: InterpreterContext) -> InterpretResult:
    cleaned = _normalize(text)
    lowered = cleaned.lower()
    is_expense = "expense" in lowered or "spent" in lowered
    direction = "expense" if is_expense else "income"

    head, when, phrase = _split_trailing_date(cleaned, context.today)
    amount = extract_amount(head)
    if amount is None and phrase is not None:
        # The trailing "date" was the amount itself, e.g. "add expense 10.05"
        head, when, phrase = cleaned, context.today, None
        amount = extract_amount(head)

    description = DEFAULT_DESCRIPTION
    if amount:
        description_match = _DESCRIPTION.search(head, amount.end)
        if description_match and description_match.group(1).strip():
            description = description_match.group(1).strip()

    entities = {
        "direction": direction,
        "amount": amount.value if amount else None,
        "description": description,
        "date": when,
        "date_phrase": phrase,
    }
    if not amount or amount.value <= 0:
        command = ParsedCommand(intent=Intent.ADD_TRANSACTION, entities=entities, confidence=Confidence.PARTIAL)
        return InterpretResult(command=command, response=TRANSACTION_GUIDANCE)

    signed = -amount.value if is_expense else amount.value
    transaction = Transaction(
        id=context.id_factory(),
        date=when,
        description=description,
        amount=signed,
        category=UNCATEGORIZED,
    )
    response = (
        f"OK, added {direction} of {format_currency(amount.value, context.currency)} "
        f'for "{description}" on {format_month_day(when)}.'
    )
    command = ParsedCommand(intent=Intent.ADD_TRANSACTION, entities=entities, confidence=Confidence.WELL_FORMED)
    return InterpretResult(
        command=command,
        response=response,
        effect=UpsertTransactionEffect(transaction=transaction),
    )


# --- Unknown ---

def _unknown(text: str, context: InterpreterContext) -> InterpretResult:
    return InterpretResult(command=ParsedCommand(intent=Intent.UNKNOWN), response=CAPABILITY_SUMMARY)


INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(Intent.CREATE_GOAL, _is_create_goal, _create_goal),
    IntentRule(Intent.QUERY_SPENDING, _is_query_spending, _query_spending),
    IntentRule(Intent.ADD_TRANSACTION, _is_add_transaction, _add_transaction),
)
FALLBACK_RULE = IntentRule(Intent.UNKNOWN, lambda lowered: True, _unknown)


def match_rule(text: str, rules: Sequence[IntentRule] = INTENT_RULES) -> IntentRule:
    lowered = (text or "").lower()
    return next((rule for rule in rules if rule.matches(lowered)), FALLBACK_RULE)


def classify(text: str) -> Intent:
    return match_rule(text).intent


def interpret(text: str, context: InterpreterContext) -> InterpretResult:
    """Classify ``text`` and evaluate it against ``context``."""
    rule = match_rule(text)
    logger.info("Command classified as %s", rule.intent.value)
    return rule.evaluate(text or "", context)


def handle_command(
    text: str,
    context: InterpreterContext,
    history: Sequence[ChatMessage] = (),
) -> Tuple[InterpretResult, List[ChatMessage]]:
    """Interpret a chat turn; returns the result and the extended conversation log."""
    log = list(history)
    log.append(ChatMessage(sender="user", text=text))
    result = interpret(text, context)
    log.append(ChatMessage(sender="assistant", text=result.response))
    return result, log


async def response_delay(delay: Optional[float] = None) -> None:
    """Wait the configured chat response delay; 0 disables it."""
    delay = get_settings().response_delay_seconds if delay is None else delay
    if delay > 0:
        await asyncio.sleep(delay)


async def handle_command_async(
    text: str,
    context: InterpreterContext,
    history: Sequence[ChatMessage] = (),
    delay: Optional[float] = None,
) -> Tuple[InterpretResult, List[ChatMessage]]:
    """Same as ``handle_command`` with the configured response delay before answering."""
    await response_delay(delay)
    return handle_command(text, context, history)
