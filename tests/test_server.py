"""Tests for the FastAPI tool server"""

import asyncio

import httpx

from budget_tracker import interpreter
from budget_tracker.config import Settings
from budget_tracker.server import app
from budget_tracker.storage import load_state


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_interpret_adds_transaction(client, store):
    response = client.post("/tools/interpret", json={"text": "add expense 500 for groceries"})

    assert response.status_code == 200
    body = response.json()
    assert body["intent"] == "AddTransaction"
    assert body["confidence"] == "well-formed"
    assert body["changed"] is True
    assert "groceries" in body["response"]

    state = load_state(store)
    assert len(state.transactions) == 1
    assert state.transactions[0].amount == -500
    assert [m.sender for m in state.chat_history] == ["user", "assistant"]


def test_interpret_unknown_leaves_data(client, store):
    body = client.post("/tools/interpret", json={"text": "sing me a song"}).json()

    assert body["intent"] == "Unknown"
    assert body["changed"] is False
    assert load_state(store).transactions == ()


def test_interpret_rejects_empty_text(client):
    assert client.post("/tools/interpret", json={"text": ""}).status_code == 422


def test_import_statement(client, store, statement_text):
    response = client.post(
        "/tools/import_statement",
        content=statement_text.encode("cp1250"),
        params={"currency": "czk"},
    )

    assert response.status_code == 200
    assert response.json() == {"imported": 2, "skipped": 3, "encoding": "cp1250"}
    assert {t.description for t in load_state(store).transactions} == {"Albert Praha", "Výplata"}


def test_project_goals(client):
    client.post("/tools/interpret", json={"text": "add goal Car for 1000"})
    client.post("/tools/interpret", json={"text": "received 3000 from salary"})

    body = client.post("/tools/project_goals").json()
    [goal] = body["goals"]
    assert goal["name"] == "Car"
    assert goal["estimated_completion_date"] is not None
    assert body["changed"] is False


def test_summary(client):
    client.post("/tools/interpret", json={"text": "received 3000 from salary"})
    client.post("/tools/interpret", json={"text": "spent 1000 on rent"})

    body = client.get("/tools/summary").json()
    assert body["balance"] == 2000
    assert body["monthly_income"] == 3000
    assert body["monthly_expenses"] == 1000
    assert body["currency"] == "CZK"


def test_overlapping_commands_keep_both_records(client, store, monkeypatch):
    monkeypatch.setattr(interpreter, "get_settings", lambda: Settings(response_delay_seconds=0.05))

    async def send_both():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            await asyncio.gather(
                ac.post("/tools/interpret", json={"text": "add expense 100 for a"}),
                ac.post("/tools/interpret", json={"text": "add expense 200 for b"}),
            )

    asyncio.run(send_both())

    assert sorted(t.description for t in load_state(store).transactions) == ["a", "b"]
