"""Mini README: In-memory ledger store with cascade-delete rules.

Structure:
    * LedgerStore - owns the three entity collections and their mutation primitives.

The store is synchronous and unlocked; it expects a single logical thread of
control (request handlers or CLI commands). Every mutation either completes
fully or leaves the collections untouched, so orphaned heads or entries are
never observable. Identifiers issued or seen by the store are remembered for
its lifetime and never handed out again, even after deletion.
"""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set, TypeVar

from ..logging_utils import get_logger
from .models import Event, ExpenseEntry, ExpenseHead, Ledger, utc_now

LOGGER = get_logger(__name__)

IdFactory = Callable[[str], str]
EntityT = TypeVar("EntityT", Event, ExpenseHead, ExpenseEntry)


def _uuid_identifier(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _first_by_id(items: Iterable[EntityT]) -> List[EntityT]:
    seen: Set[str] = set()
    unique: List[EntityT] = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique


class LedgerStore:
    """Hold the current ledger and apply create/update/delete operations."""

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        *,
        id_factory: IdFactory = _uuid_identifier,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._events: List[Event] = []
        self._heads: List[ExpenseHead] = []
        self._entries: List[ExpenseEntry] = []
        self._known_ids: Dict[str, Set[str]] = {"event": set(), "head": set(), "entry": set()}
        self._id_factory = id_factory
        self._clock = clock
        if ledger is not None:
            self.replace(ledger)
        LOGGER.debug("Ledger store initialised with %s", self.snapshot().counts())

    # ------------------------------------------------------------------ helpers
    def _next_id(self, kind: str) -> str:
        """Generate an identifier never issued or seen before for ``kind``."""

        known = self._known_ids[kind]
        identifier = self._id_factory(kind)
        while identifier in known:
            identifier = self._id_factory(kind)
        known.add(identifier)
        return identifier

    def _remember(self, ledger: Ledger) -> None:
        self._known_ids["event"].update(event.id for event in ledger.events)
        self._known_ids["head"].update(head.id for head in ledger.expense_heads)
        self._known_ids["entry"].update(entry.id for entry in ledger.expense_entries)

    # ------------------------------------------------------------------ queries
    def snapshot(self) -> Ledger:
        """Return the current ledger as an independent aggregate."""

        return Ledger(
            events=list(self._events),
            expense_heads=list(self._heads),
            expense_entries=list(self._entries),
        )

    def get_event(self, event_id: str) -> Event:
        for event in self._events:
            if event.id == event_id:
                return event
        raise KeyError(f"Event {event_id} not found")

    def get_expense_head(self, head_id: str) -> ExpenseHead:
        for head in self._heads:
            if head.id == head_id:
                return head
        raise KeyError(f"Expense head {head_id} not found")

    def get_expense_entry(self, entry_id: str) -> ExpenseEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise KeyError(f"Expense entry {entry_id} not found")

    def heads_for_event(self, event_id: str) -> List[ExpenseHead]:
        return [head for head in self._heads if head.event_id == event_id]

    def entries_for_head(self, head_id: str) -> List[ExpenseEntry]:
        """Return the payment history of a head, most recent payment first."""

        return sorted(
            (entry for entry in self._entries if entry.expense_head_id == head_id),
            key=lambda entry: entry.date,
            reverse=True,
        )

    # ------------------------------------------------------------------ creation
    def create_event(
        self,
        name: str,
        start_date: datetime,
        *,
        description: Optional[str] = None,
        end_date: Optional[datetime] = None,
    ) -> Event:
        event = Event(
            id=self._next_id("event"),
            name=name,
            start_date=start_date,
            created_at=self._clock(),
            description=description,
            end_date=end_date,
        )
        self._events.append(event)
        LOGGER.info("Created event %s (%s)", event.id, event.name)
        return event

    def create_expense_head(
        self, event_id: str, name: str, category: str, total_amount: float
    ) -> ExpenseHead:
        self.get_event(event_id)
        head = ExpenseHead(
            id=self._next_id("head"),
            event_id=event_id,
            name=name,
            category=category,
            total_amount=float(total_amount),
            created_at=self._clock(),
        )
        self._heads.append(head)
        LOGGER.info("Created expense head %s (%s) for event %s", head.id, head.name, event_id)
        return head

    def create_expense_entry(
        self,
        expense_head_id: str,
        amount_paid: float,
        *,
        date: Optional[datetime] = None,
        image: Optional[str] = None,
    ) -> ExpenseEntry:
        self.get_expense_head(expense_head_id)
        entry = ExpenseEntry(
            id=self._next_id("entry"),
            expense_head_id=expense_head_id,
            amount_paid=float(amount_paid),
            date=date or self._clock(),
            image=image,
        )
        self._entries.append(entry)
        LOGGER.info(
            "Recorded payment %s of %.2f against head %s", entry.id, entry.amount_paid, expense_head_id
        )
        return entry

    # ------------------------------------------------------------------ deletion
    def delete_event(self, event_id: str) -> Ledger:
        """Remove an event together with its heads and their entries."""

        affected_heads = {head.id for head in self._heads if head.event_id == event_id}
        events = [event for event in self._events if event.id != event_id]
        heads = [head for head in self._heads if head.event_id != event_id]
        entries = [entry for entry in self._entries if entry.expense_head_id not in affected_heads]
        removed_entries = len(self._entries) - len(entries)
        self._events, self._heads, self._entries = events, heads, entries
        LOGGER.info(
            "Deleted event %s cascading to %s heads and %s entries",
            event_id,
            len(affected_heads),
            removed_entries,
        )
        return self.snapshot()

    def delete_expense_head(self, head_id: str) -> Ledger:
        """Remove an expense head and every entry recorded against it."""

        heads = [head for head in self._heads if head.id != head_id]
        entries = [entry for entry in self._entries if entry.expense_head_id != head_id]
        removed_entries = len(self._entries) - len(entries)
        self._heads, self._entries = heads, entries
        LOGGER.info("Deleted expense head %s cascading to %s entries", head_id, removed_entries)
        return self.snapshot()

    def delete_expense_entry(self, entry_id: str) -> Ledger:
        self._entries = [entry for entry in self._entries if entry.id != entry_id]
        LOGGER.info("Deleted expense entry %s", entry_id)
        return self.snapshot()

    # ------------------------------------------------------------------ updates
    def update_expense_head_amount(self, head_id: str, new_total: float) -> None:
        """Replace the budget of one head; unknown ids are ignored."""

        self._heads = [
            dataclasses.replace(head, total_amount=float(new_total)) if head.id == head_id else head
            for head in self._heads
        ]
        LOGGER.debug("Updated budget of head %s to %.2f", head_id, float(new_total))

    def update_expense_entry_amount(self, entry_id: str, new_amount: float) -> None:
        """Replace the paid amount of one entry; unknown ids are ignored."""

        self._entries = [
            dataclasses.replace(entry, amount_paid=float(new_amount)) if entry.id == entry_id else entry
            for entry in self._entries
        ]
        LOGGER.debug("Updated amount of entry %s to %.2f", entry_id, float(new_amount))

    # ------------------------------------------------------------------ bulk
    def replace(self, ledger: Ledger) -> None:
        """Swap in a whole ledger, e.g. after an import or a remote load.

        Repeated ids keep their first occurrence; orphans left behind are pruned.
        """

        unique = Ledger(
            events=_first_by_id(ledger.events),
            expense_heads=_first_by_id(ledger.expense_heads),
            expense_entries=_first_by_id(ledger.expense_entries),
        )
        repeated = sum(ledger.counts().values()) - sum(unique.counts().values())
        if repeated:
            LOGGER.warning("Dropped %s items with repeated ids while replacing the ledger", repeated)
        copied = unique.without_orphans()
        dropped = (len(unique.expense_heads) - len(copied.expense_heads)) + (
            len(unique.expense_entries) - len(copied.expense_entries)
        )
        if dropped:
            LOGGER.warning("Dropped %s orphaned items while replacing the ledger", dropped)
        self._events = copied.events
        self._heads = copied.expense_heads
        self._entries = copied.expense_entries
        self._remember(copied)

    def clear(self) -> None:
        """Reset all three collections to empty."""

        self._events, self._heads, self._entries = [], [], []
        LOGGER.warning("Ledger store cleared")
