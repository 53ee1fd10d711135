"""Mini README: Entity dataclasses and the ledger aggregate root.

Structure:
    * Event - root of the ownership hierarchy.
    * ExpenseHead - a budget line belonging to an event.
    * ExpenseEntry - one payment recorded against an expense head.
    * Ledger - the ``{events, expenseHeads, expenseEntries}`` triple that is
      persisted, imported, exported and synced as one unit.

Entities are frozen; the store swaps in updated copies when a mutable field
(``total_amount`` or ``amount_paid``) changes, so snapshots handed to callers
never shift underneath them. ``as_dict``/``from_dict`` use the camelCase keys
of the JSON exchange format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ..errors import LedgerFormatError


def utc_now() -> datetime:
    """Wall-clock timestamp used for ``createdAt`` and default payment dates."""

    return datetime.now(timezone.utc)


def parse_timestamp(value: object) -> datetime:
    """Parse ISO strings (including a trailing ``Z``) or date objects."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as error:
            raise LedgerFormatError(f"Invalid timestamp: {value!r}") from error
    else:
        raise LedgerFormatError("Timestamps must be ISO strings or date/datetime instances.")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Serialise a timestamp for the exchange format."""

    return value.isoformat()


def _optional_timestamp(value: object) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return parse_timestamp(value)


def _amount(value: object, field_name: str) -> float:
    if isinstance(value, bool):
        raise LedgerFormatError(f"{field_name} must be a number")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as error:
        raise LedgerFormatError(f"{field_name} must be a number") from error


def _require(payload: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in payload or payload[key] is None:
        raise LedgerFormatError(f"{kind} is missing required field '{key}'")
    return payload[key]


@dataclass(frozen=True, slots=True)
class Event:
    """An occasion that groups expense heads."""

    id: str
    name: str
    start_date: datetime
    created_at: datetime
    description: Optional[str] = None
    end_date: Optional[datetime] = None

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "startDate": format_timestamp(self.start_date),
            "createdAt": format_timestamp(self.created_at),
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.end_date is not None:
            payload["endDate"] = format_timestamp(self.end_date)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Event":
        return cls(
            id=str(_require(payload, "id", "Event")),
            name=str(_require(payload, "name", "Event")),
            start_date=parse_timestamp(_require(payload, "startDate", "Event")),
            created_at=parse_timestamp(_require(payload, "createdAt", "Event")),
            description=payload.get("description"),
            end_date=_optional_timestamp(payload.get("endDate")),
        )


@dataclass(frozen=True, slots=True)
class ExpenseHead:
    """A budget line tied to an event with an editable total."""

    id: str
    event_id: str
    name: str
    category: str
    total_amount: float
    created_at: datetime

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "eventId": self.event_id,
            "name": self.name,
            "category": self.category,
            "totalAmount": self.total_amount,
            "createdAt": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExpenseHead":
        return cls(
            id=str(_require(payload, "id", "ExpenseHead")),
            event_id=str(_require(payload, "eventId", "ExpenseHead")),
            name=str(_require(payload, "name", "ExpenseHead")),
            category=str(_require(payload, "category", "ExpenseHead")),
            total_amount=_amount(_require(payload, "totalAmount", "ExpenseHead"), "totalAmount"),
            created_at=parse_timestamp(_require(payload, "createdAt", "ExpenseHead")),
        )


@dataclass(frozen=True, slots=True)
class ExpenseEntry:
    """A single payment made against an expense head."""

    id: str
    expense_head_id: str
    amount_paid: float
    date: datetime
    image: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "id": self.id,
            "expenseHeadId": self.expense_head_id,
            "amountPaid": self.amount_paid,
            "date": format_timestamp(self.date),
        }
        if self.image is not None:
            payload["image"] = self.image
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExpenseEntry":
        return cls(
            id=str(_require(payload, "id", "ExpenseEntry")),
            expense_head_id=str(_require(payload, "expenseHeadId", "ExpenseEntry")),
            amount_paid=_amount(_require(payload, "amountPaid", "ExpenseEntry"), "amountPaid"),
            date=parse_timestamp(_require(payload, "date", "ExpenseEntry")),
            image=payload.get("image"),
        )


@dataclass(slots=True)
class Ledger:
    """Aggregate root moved and replaced as a single unit."""

    events: List[Event] = field(default_factory=list)
    expense_heads: List[ExpenseHead] = field(default_factory=list)
    expense_entries: List[ExpenseEntry] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "Ledger":
        return cls()

    def copy(self) -> "Ledger":
        """Return an independent ledger; entities are frozen so sharing them is safe."""

        return Ledger(
            events=list(self.events),
            expense_heads=list(self.expense_heads),
            expense_entries=list(self.expense_entries),
        )

    def is_empty(self) -> bool:
        return not (self.events or self.expense_heads or self.expense_entries)

    def counts(self) -> Dict[str, int]:
        return {
            "events": len(self.events),
            "expenseHeads": len(self.expense_heads),
            "expenseEntries": len(self.expense_entries),
        }

    def without_orphans(self) -> "Ledger":
        """Drop heads whose event is missing and entries whose head is missing."""

        event_ids = {event.id for event in self.events}
        heads = [head for head in self.expense_heads if head.event_id in event_ids]
        head_ids = {head.id for head in heads}
        entries = [entry for entry in self.expense_entries if entry.expense_head_id in head_ids]
        return Ledger(events=list(self.events), expense_heads=heads, expense_entries=entries)

    def as_dict(self) -> Dict[str, List[Dict[str, object]]]:
        """Export the ledger in the JSON exchange format."""

        return {
            "events": [event.as_dict() for event in self.events],
            "expenseHeads": [head.as_dict() for head in self.expense_heads],
            "expenseEntries": [entry.as_dict() for entry in self.expense_entries],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Ledger":
        """Build a ledger from a payload already in the current format."""

        if not isinstance(payload, Mapping):
            raise LedgerFormatError("Ledger payload must be a JSON object")
        collections = {}
        for key in ("events", "expenseHeads", "expenseEntries"):
            items = payload.get(key)
            if not isinstance(items, list):
                raise LedgerFormatError(f"Ledger payload field '{key}' must be a list")
            if not all(isinstance(item, Mapping) for item in items):
                raise LedgerFormatError(f"Every item in '{key}' must be a JSON object")
            collections[key] = items
        return cls(
            events=[Event.from_dict(item) for item in collections["events"]],
            expense_heads=[ExpenseHead.from_dict(item) for item in collections["expenseHeads"]],
            expense_entries=[ExpenseEntry.from_dict(item) for item in collections["expenseEntries"]],
        )
