"""Mini README: Merge-on-import for ledgers that evolved independently.

Structure:
    * DedupPolicy - identity used to decide whether an imported item already exists.
    * MergePolicy - the dedup policy chosen for each of the three collections.
    * MergeStats - added/skipped counts with a human readable summary.
    * MergeResult - merged ledger plus its stats.
    * normalise_import_payload - shape checks and legacy (event-less) upgrade.
    * merge_ledgers - pure, deterministic union of a current and an imported ledger.

The current ledger always wins: an imported item whose identity key is already
present is skipped, never used to overwrite. When a parent is skipped as a
duplicate under the natural-key policy, its imported children are re-pointed
at the surviving parent so payments are not lost. A new imported item whose
id already belongs to a different current item is stored under a fresh id
(``<id>-1``, ``<id>-2``, ...) and its children follow it, so ids stay unique
per collection. Imported children whose parent exists on neither side are
dropped and counted separately.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence, Set, Tuple, TypeVar

from ..errors import LedgerFormatError
from ..logging_utils import get_logger
from .models import Event, ExpenseEntry, ExpenseHead, Ledger, format_timestamp, utc_now

LOGGER = get_logger(__name__)

LEGACY_EVENT_NAME = "Imported Expenses"
LEGACY_EVENT_DESCRIPTION = "Auto-created event for imported expenses"

T = TypeVar("T", Event, ExpenseHead, ExpenseEntry)


class DedupPolicy(str, Enum):
    """Enumerate the supported identity policies."""

    ID = "id"
    NATURAL_KEY = "natural_key"

    @classmethod
    def from_str(cls, value: str) -> "DedupPolicy":
        """Coerce arbitrary casing into a valid policy."""

        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported dedup policy: {value}") from error


@dataclass(frozen=True, slots=True)
class MergePolicy:
    """Dedup policy applied to each collection during a merge."""

    events: DedupPolicy = DedupPolicy.ID
    expense_heads: DedupPolicy = DedupPolicy.ID
    expense_entries: DedupPolicy = DedupPolicy.ID


@dataclass(slots=True)
class MergeStats:
    """Per-collection counts reported after a merge."""

    added_events: int = 0
    added_heads: int = 0
    added_entries: int = 0
    skipped_events: int = 0
    skipped_heads: int = 0
    skipped_entries: int = 0
    dropped_orphans: int = 0

    @property
    def total_added(self) -> int:
        return self.added_events + self.added_heads + self.added_entries

    @property
    def total_skipped(self) -> int:
        return self.skipped_events + self.skipped_heads + self.skipped_entries

    def as_dict(self) -> Dict[str, int]:
        return {
            "addedEvents": self.added_events,
            "addedHeads": self.added_heads,
            "addedEntries": self.added_entries,
            "skippedEvents": self.skipped_events,
            "skippedHeads": self.skipped_heads,
            "skippedEntries": self.skipped_entries,
            "droppedOrphans": self.dropped_orphans,
        }

    def summary(self) -> str:
        """Build the message shown to the user once an import completes."""

        added: List[str] = []
        if self.added_events:
            added.append(f"{self.added_events} event(s)")
        if self.added_heads:
            added.append(f"{self.added_heads} expense head(s)")
        if self.added_entries:
            added.append(f"{self.added_entries} entry/entries")

        skipped: List[str] = []
        if self.skipped_events:
            skipped.append(f"{self.skipped_events} duplicate event(s)")
        if self.skipped_heads:
            skipped.append(f"{self.skipped_heads} duplicate head(s)")
        if self.skipped_entries:
            skipped.append(f"{self.skipped_entries} duplicate entry/entries")

        message = "Import completed: "
        message += f"Added {', '.join(added)}" if added else "No new items"
        if skipped:
            message += f". Skipped {', '.join(skipped)}"
        if self.dropped_orphans:
            message += f". Dropped {self.dropped_orphans} item(s) referencing missing parents"
        return message


@dataclass(slots=True)
class MergeResult:
    """Outcome of ``merge_ledgers``."""

    ledger: Ledger
    stats: MergeStats = field(default_factory=MergeStats)


def _event_key(event: Event, policy: DedupPolicy) -> Hashable:
    if policy is DedupPolicy.ID:
        return event.id
    return (event.name, format_timestamp(event.start_date))


def _head_key(head: ExpenseHead, policy: DedupPolicy) -> Hashable:
    if policy is DedupPolicy.ID:
        return head.id
    return (head.name, head.category, head.total_amount)


def _entry_key(entry: ExpenseEntry, policy: DedupPolicy) -> Hashable:
    if policy is DedupPolicy.ID:
        return entry.id
    return (entry.expense_head_id, entry.amount_paid, format_timestamp(entry.date))


def _fresh_id(identifier: str, taken: Set[str]) -> str:
    suffix = 1
    candidate = f"{identifier}-{suffix}"
    while candidate in taken:
        suffix += 1
        candidate = f"{identifier}-{suffix}"
    return candidate


def _partition(
    current: Sequence[T],
    imported: Sequence[T],
    key: Callable[[T], Hashable],
) -> Tuple[List[T], int, Dict[str, str]]:
    """Split imported items into new ones and duplicates.

    Returns the new items, the duplicate count and a mapping from imported ids
    to the ids their children must point at: the surviving item for a
    duplicate, or a fresh id for a new item whose id is already taken.
    """

    existing: Dict[Hashable, str] = {}
    taken: Set[str] = {item.id for item in current}
    for item in current:
        existing.setdefault(key(item), item.id)
    new_items: List[T] = []
    skipped = 0
    redirects: Dict[str, str] = {}
    for item in imported:
        identity = key(item)
        if identity in existing:
            skipped += 1
            redirects[item.id] = existing[identity]
            continue
        if item.id in taken:
            renamed = _fresh_id(item.id, taken)
            LOGGER.info("Imported id %s already in use; stored as %s", item.id, renamed)
            redirects[item.id] = renamed
            item = dataclasses.replace(item, id=renamed)
        taken.add(item.id)
        # A later imported item with the same identity is a duplicate of this one.
        existing[identity] = item.id
        new_items.append(item)
    return new_items, skipped, redirects


def merge_ledgers(
    current: Ledger,
    imported: Ledger,
    policy: Optional[MergePolicy] = None,
) -> MergeResult:
    """Union ``imported`` into ``current`` without duplicates or data loss.

    The function is pure: neither input is modified and identical inputs
    always yield identical output and stats.
    """

    policy = policy or MergePolicy()
    stats = MergeStats()

    new_events, stats.skipped_events, event_redirects = _partition(
        current.events, imported.events, lambda event: _event_key(event, policy.events)
    )
    stats.added_events = len(new_events)

    relinked_heads = [
        dataclasses.replace(head, event_id=event_redirects[head.event_id])
        if head.event_id in event_redirects
        else head
        for head in imported.expense_heads
    ]
    new_heads, stats.skipped_heads, head_redirects = _partition(
        current.expense_heads, relinked_heads, lambda head: _head_key(head, policy.expense_heads)
    )

    relinked_entries = [
        dataclasses.replace(entry, expense_head_id=head_redirects[entry.expense_head_id])
        if entry.expense_head_id in head_redirects
        else entry
        for entry in imported.expense_entries
    ]
    new_entries, stats.skipped_entries, _ = _partition(
        current.expense_entries,
        relinked_entries,
        lambda entry: _entry_key(entry, policy.expense_entries),
    )

    event_ids = {event.id for event in current.events} | {event.id for event in new_events}
    linked_heads = [head for head in new_heads if head.event_id in event_ids]
    head_ids = {head.id for head in current.expense_heads} | {head.id for head in linked_heads}
    linked_entries = [entry for entry in new_entries if entry.expense_head_id in head_ids]
    stats.dropped_orphans = (len(new_heads) - len(linked_heads)) + (
        len(new_entries) - len(linked_entries)
    )
    stats.added_heads = len(linked_heads)
    stats.added_entries = len(linked_entries)

    merged = Ledger(
        events=[*current.events, *new_events],
        expense_heads=[*current.expense_heads, *linked_heads],
        expense_entries=[*current.expense_entries, *linked_entries],
    )
    LOGGER.info("Merged imported ledger: %s", stats.as_dict())
    return MergeResult(ledger=merged, stats=stats)


def normalise_import_payload(payload: Any, *, now: Optional[datetime] = None) -> Ledger:
    """Validate an import payload and upgrade the legacy event-less format.

    A payload must be an object whose ``expenseHeads`` and ``expenseEntries``
    are lists. When ``events`` is absent a single "Imported Expenses" event is
    synthesised and assigned to every head without an ``eventId``.
    """

    if not isinstance(payload, Mapping):
        raise LedgerFormatError("Invalid data format: expected a JSON object")
    if not isinstance(payload.get("expenseHeads"), list) or not isinstance(
        payload.get("expenseEntries"), list
    ):
        raise LedgerFormatError(
            "Invalid data format: 'expenseHeads' and 'expenseEntries' must be lists"
        )
    if isinstance(payload.get("events"), list):
        return Ledger.from_dict(payload)
    if "events" in payload and payload["events"] is not None:
        raise LedgerFormatError("Invalid data format: 'events' must be a list")

    timestamp = now or utc_now()
    default_event = Event(
        id=f"event-{int(timestamp.timestamp() * 1000)}",
        name=LEGACY_EVENT_NAME,
        description=LEGACY_EVENT_DESCRIPTION,
        start_date=timestamp,
        created_at=timestamp,
    )
    migrated_heads = []
    for head in payload["expenseHeads"]:
        if not isinstance(head, Mapping):
            raise LedgerFormatError("Every item in 'expenseHeads' must be a JSON object")
        migrated_heads.append({**head, "eventId": head.get("eventId") or default_event.id})
    LOGGER.info(
        "Upgraded legacy import with %s expense heads into event %s",
        len(migrated_heads),
        default_event.id,
    )
    upgraded = Ledger.from_dict(
        {
            "events": [],
            "expenseHeads": migrated_heads,
            "expenseEntries": payload["expenseEntries"],
        }
    )
    upgraded.events.append(default_event)
    return upgraded


def import_into(
    current: Ledger,
    payload: Any,
    *,
    policy: Optional[MergePolicy] = None,
    now: Optional[datetime] = None,
) -> MergeResult:
    """Normalise ``payload`` and merge it into ``current``."""

    return merge_ledgers(current, normalise_import_payload(payload, now=now), policy)
