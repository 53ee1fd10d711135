"""Mini README: Tests for derived paid/due figures and event rollups.

Covers the wedding catering walkthrough, overpayment producing a negative due
amount, and the zero defaults for unknown heads.
"""

from __future__ import annotations

import pytest

from eventledger.ledger import LedgerStore, stats

from .helpers import FIXED_NOW, counter_ids


def _wedding_store() -> LedgerStore:
    store = LedgerStore(id_factory=counter_ids(), clock=lambda: FIXED_NOW)
    wedding = store.create_event("Wedding", FIXED_NOW)
    catering = store.create_expense_head(wedding.id, "Catering", "Food", 50000)
    store.create_expense_entry(catering.id, 20000)
    store.create_expense_entry(catering.id, 15000)
    return store


def test_wedding_catering_totals() -> None:
    """Two payments against one head roll up into the event figures."""

    store = _wedding_store()
    ledger = store.snapshot()
    catering = ledger.expense_heads[0]

    assert stats.amount_paid(ledger, catering.id) == pytest.approx(35000)
    assert stats.amount_due(ledger, catering.id) == pytest.approx(15000)

    rollup = stats.event_rollup(ledger, ledger.events[0].id)
    assert rollup.total_expense_heads == 1
    assert rollup.total_budget == pytest.approx(50000)
    assert rollup.total_spent == pytest.approx(35000)
    assert rollup.total_due == pytest.approx(15000)


def test_overpayment_yields_negative_due_and_warning() -> None:
    """Amount due is budget minus payments without clamping at zero."""

    store = _wedding_store()
    catering = store.snapshot().expense_heads[0]

    warning = stats.overpayment_warning(store.snapshot(), catering.id, 20000)
    store.create_expense_entry(catering.id, 20000)
    ledger = store.snapshot()

    assert warning is not None and "exceeds remaining amount (15000.00)" in warning
    assert stats.amount_due(ledger, catering.id) == pytest.approx(-5000)
    assert stats.event_rollup(ledger, ledger.events[0].id).total_due == pytest.approx(-5000)


def test_no_warning_when_payment_fits_budget() -> None:
    store = _wedding_store()
    catering = store.snapshot().expense_heads[0]

    assert stats.overpayment_warning(store.snapshot(), catering.id, 15000) is None


def test_unknown_head_defaults_to_zero() -> None:
    ledger = _wedding_store().snapshot()

    assert stats.amount_paid(ledger, "missing") == 0
    assert stats.amount_due(ledger, "missing") == 0


def test_event_without_heads_has_empty_rollup() -> None:
    store = LedgerStore(id_factory=counter_ids(), clock=lambda: FIXED_NOW)
    event = store.create_event("Wedding", FIXED_NOW)

    rollup = stats.event_rollup(store.snapshot(), event.id)

    assert rollup.as_dict()["totalExpenseHeads"] == 0
    assert rollup.total_budget == 0
    assert rollup.total_due == 0


def test_expenses_grouped_by_event() -> None:
    store = _wedding_store()
    trip = store.create_event("Trip", FIXED_NOW)
    flights = store.create_expense_head(trip.id, "Flights", "Travel", 900)
    ledger = store.snapshot()

    grouped = stats.expenses_by_event(ledger)

    assert [expense.head.id for expense in grouped[trip.id]] == [flights.id]
    assert grouped[ledger.events[0].id][0].as_dict()["amountPaid"] == pytest.approx(35000)
    assert [item.event.name for item in stats.events_with_stats(ledger)] == ["Wedding", "Trip"]
