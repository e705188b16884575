"""Lightweight tool server exposing the budget tracker core over FastAPI."""

from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from pydantic import BaseModel, Field

from budget_tracker import __version__
from budget_tracker.importer import import_statement as run_import
from budget_tracker.interpreter import InterpreterContext, handle_command, response_delay
from budget_tracker.ledger import (
    add_transactions,
    apply_effect,
    balance_summary,
    goals_by_eta,
    refresh_goals,
    set_chat_history,
)
from budget_tracker.logging_setup import setup_logging
from budget_tracker.models import Goal
from budget_tracker.storage import KeyValueStore, load_state, save_state

app = FastAPI(title="Budget Tracker Tool Server", version=__version__)


@lru_cache
def get_store() -> KeyValueStore:
    return KeyValueStore()


class InterpretRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Chat command, e.g. 'add expense 500 for groceries'")


class InterpretResponse(BaseModel):
    response: str
    intent: str
    confidence: str
    entities: Dict[str, Any]
    changed: bool


@app.post("/tools/interpret", response_model=InterpretResponse)
async def interpret(req: InterpretRequest, store: KeyValueStore = Depends(get_store)):
    # Nothing may await between load_state and save_state
    await response_delay()
    state = load_state(store)
    context = InterpreterContext(transactions=state.transactions, currency=state.currency, now=date.today())
    result, history = handle_command(req.text, context, state.chat_history)

    state = set_chat_history(apply_effect(state, result.effect), history)
    state, _ = refresh_goals(state, date.today())
    save_state(store, state)

    return InterpretResponse(
        response=result.response,
        intent=result.command.intent.value,
        confidence=result.command.confidence.value,
        entities=result.command.entities,
        changed=result.effect is not None,
    )


class ImportResponse(BaseModel):
    imported: int
    skipped: int
    encoding: str


@app.post("/tools/import_statement", response_model=ImportResponse)
async def import_statement(
    request: Request,
    currency: Optional[str] = None,
    store: KeyValueStore = Depends(get_store),
):
    """Import a raw CSV statement sent as the request body."""
    state = load_state(store)
    result = run_import(await request.body(), (currency or state.currency).upper())

    state = add_transactions(state, result.accepted)
    state, _ = refresh_goals(state, date.today())
    save_state(store, state)
    return ImportResponse(imported=len(result.accepted), skipped=result.skipped, encoding=result.encoding)


class GoalsResponse(BaseModel):
    goals: List[Goal]
    changed: bool


@app.post("/tools/project_goals", response_model=GoalsResponse, response_model_by_alias=False)
async def project_goals(store: KeyValueStore = Depends(get_store)):
    state, changed = refresh_goals(load_state(store), date.today())
    if changed:
        save_state(store, state)
    return GoalsResponse(goals=goals_by_eta(state.goals), changed=changed)


class SummaryResponse(BaseModel):
    currency: str
    balance: float
    monthly_income: float
    monthly_expenses: float


@app.get("/tools/summary", response_model=SummaryResponse)
async def summary(store: KeyValueStore = Depends(get_store)):
    state = load_state(store)
    return SummaryResponse(currency=state.currency, **balance_summary(state.transactions, date.today()))


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run("budget_tracker.server:app", host="0.0.0.0", port=8001, reload=True)
