"""Mini README: Tests for the FastAPI interface.

These tests drive the HTTP routes end to end against a board backed by the
in-memory remote store, checking the happy path, error mapping and the
clear-all confirmation gate.
"""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from eventledger.board import LedgerBoard
from eventledger.interface import create_application
from eventledger.ledger import LedgerStore
from eventledger.remote.providers import MemoryRemoteStore
from eventledger.sync import SyncEngine

from .helpers import FIXED_NOW, counter_ids


@pytest.fixture
def remote() -> MemoryRemoteStore:
    return MemoryRemoteStore("expense-data")


@pytest.fixture
def client(remote: MemoryRemoteStore):
    board = LedgerBoard(
        store=LedgerStore(id_factory=counter_ids(), clock=lambda: FIXED_NOW),
        engine=SyncEngine(remote),
        clock=lambda: FIXED_NOW,
    )
    with TestClient(create_application(board)) as test_client:
        yield test_client


def _create_wedding(client: TestClient) -> str:
    event = client.post("/events", data={"name": "Wedding", "start_date": "2024-06-01"}).json()["event"]
    head = client.post(
        "/expense-heads",
        data={"event_id": event["id"], "name": "Catering", "category": "Food", "total_amount": "50000"},
    ).json()["expenseHead"]
    return head["id"]


def test_budget_flow_reports_stats(client: TestClient, remote: MemoryRemoteStore) -> None:
    """Creating an event, a head and two payments yields the expected rollup."""

    head_id = _create_wedding(client)
    for amount in ("20000", "15000"):
        response = client.post(
            "/expense-entries", data={"expense_head_id": head_id, "amount_paid": amount}
        )
        assert response.status_code == 200
        assert response.json()["warning"] is None

    stats = client.get("/stats").json()
    event = stats["events"][0]
    assert event["totalBudget"] == pytest.approx(50000)
    assert event["totalSpent"] == pytest.approx(35000)
    assert event["totalDue"] == pytest.approx(15000)
    assert stats["syncStatus"]["state"] == "idle"
    assert remote.documents["expense-data"].ledger.counts()["expenseEntries"] == 2

    history = client.get(f"/expense-heads/{head_id}/history").json()
    assert history["amountDue"] == pytest.approx(15000)
    assert len(history["entries"]) == 2


def test_overpayment_returns_warning(client: TestClient) -> None:
    head_id = _create_wedding(client)

    response = client.post(
        "/expense-entries", data={"expense_head_id": head_id, "amount_paid": "60000"}
    )

    assert response.status_code == 200
    assert "exceeds remaining amount" in response.json()["warning"]


def test_validation_and_missing_ids_map_to_http_errors(client: TestClient) -> None:
    head_id = _create_wedding(client)

    bad_amount = client.post("/expense-entries", data={"expense_head_id": head_id, "amount_paid": "-1"})
    bad_date = client.post("/events", data={"name": "Trip", "start_date": "not-a-date"})
    missing = client.delete("/expense-heads/unknown")
    missing_patch = client.patch("/expense-entries/unknown", data={"amount_paid": "5"})

    assert bad_amount.status_code == 400
    assert bad_date.status_code == 400
    assert missing.status_code == 404
    assert missing_patch.status_code == 404


def test_delete_event_cascades(client: TestClient) -> None:
    head_id = _create_wedding(client)
    client.post("/expense-entries", data={"expense_head_id": head_id, "amount_paid": "10"})
    event_id = client.get("/ledger").json()["events"][0]["id"]

    response = client.delete(f"/events/{event_id}")

    assert response.json()["counts"] == {"events": 0, "expenseHeads": 0, "expenseEntries": 0}


def test_export_then_import_skips_duplicates(client: TestClient) -> None:
    _create_wedding(client)

    exported = client.get("/export")
    assert exported.headers["content-disposition"] == 'attachment; filename="expenses-2024-06-01-12-30-45.json"'

    response = client.post(
        "/import",
        files={"ledger_file": ("backup.json", json.dumps(exported.json()), "application/json")},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["stats"]["skippedEvents"] == 1
    assert body["message"].startswith("Import completed: No new items")


def test_import_rejects_malformed_file(client: TestClient) -> None:
    response = client.post(
        "/import",
        files={"ledger_file": ("bad.json", '{"expenseHeads": []}', "application/json")},
    )

    assert response.status_code == 400
    assert client.get("/ledger").json() == {"events": [], "expenseHeads": [], "expenseEntries": []}


def test_clear_all_requires_exact_confirmation(client: TestClient, remote: MemoryRemoteStore) -> None:
    _create_wedding(client)

    blocked = client.post("/clear-all", data={"confirmation": "delete all"})
    assert blocked.status_code == 400
    assert "expense-data" in remote.documents
    assert len(client.get("/ledger").json()["events"]) == 1

    cleared = client.post("/clear-all", data={"confirmation": "DELETE ALL"})
    assert cleared.status_code == 200
    assert cleared.json()["success"] is True
    assert "expense-data" not in remote.documents
    assert client.get("/ledger").json()["events"] == []


def test_manual_sync_and_status(client: TestClient) -> None:
    response = client.post("/sync")

    assert response.json()["success"] is True
    status = client.get("/sync-status").json()
    assert status["state"] == "idle"
    assert status["remote"]["provider"] == "memory"


def test_disabled_sync_surfaces_configuration_error() -> None:
    board = LedgerBoard(engine=SyncEngine(), clock=lambda: FIXED_NOW)
    with TestClient(create_application(board)) as client:
        assert client.get("/sync-status").json()["state"] == "disabled"
        assert client.post("/clear-all", data={"confirmation": "DELETE ALL"}).status_code == 409
        assert client.post("/import-remote").status_code == 409
