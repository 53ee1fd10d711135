"""Mini README: Tests for the in-memory ledger store.

Structure:
    * Cascade integrity when deleting events and expense heads.
    * Single-field updates and their silent no-op on unknown ids.
    * Identifier uniqueness, including ids never being reused after deletion.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from eventledger.ledger import Ledger, LedgerStore
from eventledger.ledger.models import Event, ExpenseHead

from .helpers import FIXED_NOW, counter_ids


def _store() -> LedgerStore:
    return LedgerStore(id_factory=counter_ids(), clock=lambda: FIXED_NOW)


def _populated_store() -> LedgerStore:
    store = _store()
    wedding = store.create_event("Wedding", FIXED_NOW)
    trip = store.create_event("Trip", FIXED_NOW)
    catering = store.create_expense_head(wedding.id, "Catering", "Food", 50000)
    venue = store.create_expense_head(wedding.id, "Venue", "Hall", 80000)
    flights = store.create_expense_head(trip.id, "Flights", "Travel", 20000)
    store.create_expense_entry(catering.id, 20000)
    store.create_expense_entry(venue.id, 10000)
    store.create_expense_entry(flights.id, 5000)
    return store


def _assert_no_orphans(ledger: Ledger) -> None:
    event_ids = {event.id for event in ledger.events}
    head_ids = {head.id for head in ledger.expense_heads}
    assert all(head.event_id in event_ids for head in ledger.expense_heads)
    assert all(entry.expense_head_id in head_ids for entry in ledger.expense_entries)


def test_delete_event_cascades_to_heads_and_entries() -> None:
    """Deleting an event removes its heads and every entry of those heads."""

    store = _populated_store()
    wedding = store.snapshot().events[0]

    ledger = store.delete_event(wedding.id)

    assert [event.name for event in ledger.events] == ["Trip"]
    assert [head.name for head in ledger.expense_heads] == ["Flights"]
    assert [entry.amount_paid for entry in ledger.expense_entries] == [5000.0]
    _assert_no_orphans(ledger)


def test_delete_expense_head_cascades_to_entries() -> None:
    store = _populated_store()
    catering = store.snapshot().expense_heads[0]

    ledger = store.delete_expense_head(catering.id)

    assert catering.id not in {head.id for head in ledger.expense_heads}
    assert all(entry.expense_head_id != catering.id for entry in ledger.expense_entries)
    assert len(ledger.events) == 2
    _assert_no_orphans(ledger)


def test_delete_event_returns_snapshot_unaffected_by_later_changes() -> None:
    store = _populated_store()
    ledger = store.delete_event(store.snapshot().events[1].id)
    store.clear()

    assert len(ledger.events) == 1
    assert store.snapshot().is_empty()


def test_updates_replace_single_field_and_ignore_unknown_ids() -> None:
    """Amount updates touch one entity only and are no-ops for missing ids."""

    store = _populated_store()
    before = store.snapshot()
    head = before.expense_heads[0]
    entry = before.expense_entries[0]

    store.update_expense_head_amount(head.id, 60000)
    store.update_expense_entry_amount(entry.id, 25000)
    store.update_expense_head_amount("missing", 1)
    store.update_expense_entry_amount("missing", 1)

    after = store.snapshot()
    assert after.expense_heads[0].total_amount == pytest.approx(60000)
    assert after.expense_heads[0].name == head.name
    assert after.expense_heads[1:] == before.expense_heads[1:]
    assert after.expense_entries[0].amount_paid == pytest.approx(25000)
    assert after.expense_entries[1:] == before.expense_entries[1:]
    assert before.expense_heads[0].total_amount == pytest.approx(50000)


def test_identifiers_are_never_reused_after_deletion() -> None:
    """A factory that repeats ids must not cause an old id to be handed out again."""

    issued = iter(["event-a", "event-a", "event-b"])
    store = LedgerStore(id_factory=lambda kind: next(issued), clock=lambda: FIXED_NOW)

    first = store.create_event("One", FIXED_NOW)
    store.delete_event(first.id)
    second = store.create_event("Two", FIXED_NOW)

    assert first.id == "event-a"
    assert second.id == "event-b"


def test_replace_remembers_imported_ids() -> None:
    issued = iter(["event-x", "event-y"])
    imported = Ledger(events=[Event(id="event-x", name="Old", start_date=FIXED_NOW, created_at=FIXED_NOW)])
    store = LedgerStore(imported, id_factory=lambda kind: next(issued), clock=lambda: FIXED_NOW)

    created = store.create_event("New", FIXED_NOW)

    assert created.id == "event-y"


def test_replace_drops_orphaned_items() -> None:
    ledger = Ledger(
        expense_heads=[
            ExpenseHead(
                id="h1",
                event_id="missing",
                name="Catering",
                category="Food",
                total_amount=10.0,
                created_at=FIXED_NOW,
            )
        ]
    )
    store = LedgerStore(ledger)

    assert store.snapshot().expense_heads == []


def test_replace_keeps_first_item_for_repeated_ids() -> None:
    ledger = Ledger(
        events=[
            Event(id="ev1", name="Wedding", start_date=FIXED_NOW, created_at=FIXED_NOW),
            Event(id="ev1", name="Trip", start_date=FIXED_NOW, created_at=FIXED_NOW),
        ],
        expense_heads=[
            ExpenseHead(
                id="h1",
                event_id="ev1",
                name=name,
                category="Food",
                total_amount=10.0,
                created_at=FIXED_NOW,
            )
            for name in ("Catering", "Flights")
        ],
    )
    store = LedgerStore(ledger)

    store.update_expense_head_amount("h1", 99.0)

    snapshot = store.snapshot()
    assert [event.name for event in snapshot.events] == ["Wedding"]
    assert [(head.name, head.total_amount) for head in snapshot.expense_heads] == [("Catering", 99.0)]


def test_create_requires_existing_parents() -> None:
    store = _store()

    with pytest.raises(KeyError):
        store.create_expense_head("missing", "Catering", "Food", 100)
    with pytest.raises(KeyError):
        store.create_expense_entry("missing", 100)
    assert store.snapshot().is_empty()


def test_entries_for_head_lists_newest_payment_first() -> None:
    store = _store()
    event = store.create_event("Wedding", FIXED_NOW)
    head = store.create_expense_head(event.id, "Catering", "Food", 100)
    older = store.create_expense_entry(head.id, 10, date=datetime(2024, 1, 1, tzinfo=timezone.utc))
    newer = store.create_expense_entry(head.id, 20, date=datetime(2024, 3, 1, tzinfo=timezone.utc))

    assert [entry.id for entry in store.entries_for_head(head.id)] == [newer.id, older.id]


def test_entry_date_defaults_to_clock() -> None:
    store = _store()
    event = store.create_event("Wedding", FIXED_NOW)
    head = store.create_expense_head(event.id, "Catering", "Food", 100)

    entry = store.create_expense_entry(head.id, 10)

    assert entry.date == FIXED_NOW
    assert head.created_at == FIXED_NOW
