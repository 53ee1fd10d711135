"""Mini README: Derived financial figures for expense heads and events.

Structure:
    * ExpenseWithStats - an expense head paired with amount paid and due.
    * EventWithStats - an event paired with its budget rollup.
    * amount_paid / amount_due - per-head derivations.
    * expenses_with_stats / events_with_stats / expenses_by_event - display helpers.
    * overpayment_warning - non-fatal message when a payment exceeds what is due.

Every function reads a ``Ledger`` snapshot and recomputes from scratch; there
is no cache to invalidate. Amount due is never clamped, so an overpaid head
reports a negative figure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import Event, ExpenseHead, Ledger


@dataclass(frozen=True, slots=True)
class ExpenseWithStats:
    """Expense head enriched with paid and due amounts."""

    head: ExpenseHead
    amount_paid: float
    amount_due: float

    def as_dict(self) -> Dict[str, object]:
        payload = self.head.as_dict()
        payload["amountPaid"] = self.amount_paid
        payload["amountDue"] = self.amount_due
        return payload


@dataclass(frozen=True, slots=True)
class EventWithStats:
    """Event enriched with the rollup of its expense heads."""

    event: Event
    total_expense_heads: int
    total_budget: float
    total_spent: float
    total_due: float

    def as_dict(self) -> Dict[str, object]:
        payload = self.event.as_dict()
        payload.update(
            {
                "totalExpenseHeads": self.total_expense_heads,
                "totalBudget": self.total_budget,
                "totalSpent": self.total_spent,
                "totalDue": self.total_due,
            }
        )
        return payload


def amount_paid(ledger: Ledger, head_id: str) -> float:
    """Sum of payments recorded against ``head_id`` (0 when there are none)."""

    return sum(
        (entry.amount_paid for entry in ledger.expense_entries if entry.expense_head_id == head_id),
        0.0,
    )


def amount_due(ledger: Ledger, head_id: str) -> float:
    """Budget minus payments for ``head_id``; 0 when the head does not exist."""

    for head in ledger.expense_heads:
        if head.id == head_id:
            return head.total_amount - amount_paid(ledger, head_id)
    return 0.0


def expenses_with_stats(ledger: Ledger) -> List[ExpenseWithStats]:
    return [
        ExpenseWithStats(
            head=head,
            amount_paid=amount_paid(ledger, head.id),
            amount_due=amount_due(ledger, head.id),
        )
        for head in ledger.expense_heads
    ]


def event_rollup(ledger: Ledger, event_id: str) -> EventWithStats:
    """Aggregate budget, spend and due over the heads of one event."""

    event = next((item for item in ledger.events if item.id == event_id), None)
    if event is None:
        raise KeyError(f"Event {event_id} not found")
    heads = [head for head in ledger.expense_heads if head.event_id == event_id]
    total_budget = sum((head.total_amount for head in heads), 0.0)
    total_spent = sum((amount_paid(ledger, head.id) for head in heads), 0.0)
    return EventWithStats(
        event=event,
        total_expense_heads=len(heads),
        total_budget=total_budget,
        total_spent=total_spent,
        total_due=total_budget - total_spent,
    )


def events_with_stats(ledger: Ledger) -> List[EventWithStats]:
    return [event_rollup(ledger, event.id) for event in ledger.events]


def expenses_by_event(ledger: Ledger) -> Dict[str, List[ExpenseWithStats]]:
    """Group heads with their stats by owning event id, preserving ledger order."""

    grouped: Dict[str, List[ExpenseWithStats]] = {}
    for expense in expenses_with_stats(ledger):
        grouped.setdefault(expense.head.event_id, []).append(expense)
    return grouped


def overpayment_warning(ledger: Ledger, head_id: str, amount: float) -> Optional[str]:
    """Describe an overpayment before it is recorded, or return ``None``."""

    remaining = amount_due(ledger, head_id)
    if amount > remaining:
        return (
            f"Warning: Amount paid ({amount:.2f}) exceeds remaining amount ({remaining:.2f})"
        )
    return None
