"""Mini README: Ledger board orchestrating store, stats, imports and sync.

Structure:
    * EntryReceipt - a newly recorded payment plus an optional overpayment warning.
    * ClearAllOutcome - result of a confirmed clear-all.
    * LedgerBoard - validates caller input, mutates the store, mirrors the
      ledger locally and pushes it to the remote through the sync engine.
    * build_board - wires a board from ``EventLedgerSettings``.

Validation happens before any mutation, so a rejected request leaves the
ledger untouched. Remote failures after a successful local mutation are
recorded in the sync status rather than raised: the local change stands and
the next save retries.

With remote sync enabled, the first change on a board that was never started
performs the startup load itself, so a local-only ledger never overwrites the
remote document unseen.
"""

from __future__ import annotations

import base64
import binascii
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from .configuration import EventLedgerSettings
from .errors import LedgerValidationError, RemoteStoreError
from .ledger import stats
from .ledger.models import Event, ExpenseEntry, ExpenseHead, Ledger, parse_timestamp, utc_now
from .ledger.reconciliation import MergePolicy, MergeStats, import_into, merge_ledgers
from .ledger.storage import LocalLedgerFile, export_payload
from .ledger.store import LedgerStore
from .logging_utils import get_logger
from .remote import REGISTRY, RemoteLedgerStore
from .sync import ClearAllGuard, SyncEngine, SyncResult, SyncStatus

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class EntryReceipt:
    """A recorded payment and the warning raised when it overpays the head."""

    entry: ExpenseEntry
    warning: Optional[str] = None


@dataclass(slots=True)
class ClearAllOutcome:
    """Result of a clear-all that passed the confirmation gate."""

    success: bool
    message: str
    status: SyncStatus


def _require_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise LedgerValidationError(f"{label} is required")
    return text


def _require_positive(value: object, label: str) -> float:
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as error:
        raise LedgerValidationError(f"Please enter a valid {label} greater than 0") from error
    if not math.isfinite(amount) or amount <= 0:
        raise LedgerValidationError(f"Please enter a valid {label} greater than 0")
    return amount


def _image_size(image: str) -> int:
    """Byte size of an inline image, decoding base64 data URLs when possible."""

    payload = image.split(",", 1)[1] if image.startswith("data:") and "," in image else image
    try:
        return len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError):
        return len(image.encode("utf-8"))


class LedgerBoard:
    """High-level operations used by the HTTP interface and the CLI."""

    def __init__(
        self,
        *,
        store: Optional[LedgerStore] = None,
        engine: Optional[SyncEngine] = None,
        local_file: Optional[LocalLedgerFile] = None,
        guard: Optional[ClearAllGuard] = None,
        merge_policy: Optional[MergePolicy] = None,
        max_image_bytes: int = 5 * 1024 * 1024,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store or LedgerStore(clock=clock)
        self.engine = engine or SyncEngine()
        self.local_file = local_file
        self.guard = guard or ClearAllGuard()
        self.merge_policy = merge_policy or MergePolicy()
        self.max_image_bytes = max_image_bytes
        self._clock = clock
        self._started = False

    # ------------------------------------------------------------------ lifecycle
    async def start(self) -> SyncResult:
        """Resolve the sync state and load the starting ledger."""

        result = await self.engine.initialise()
        if result.status.enabled:
            ledger = result.ledger or Ledger.empty()
            if not result.success:
                LOGGER.error("Failed to load remote ledger: %s", result.error)
        elif self.local_file is not None:
            ledger = self.local_file.load()
            LOGGER.info("Remote sync disabled; loaded local ledger %s", ledger.counts())
        else:
            ledger = Ledger.empty()
        self.store.replace(ledger)
        self._started = True
        if result.success:
            self._persist_locally()
        return result

    async def _ensure_started(self) -> None:
        """Run the startup load before the first remote-backed change."""

        if not self._started and self.engine.status.enabled:
            LOGGER.info("Board used before start; loading the remote ledger first")
            await self.start()

    def snapshot(self) -> Ledger:
        return self.store.snapshot()

    def sync_status(self) -> SyncStatus:
        return self.engine.status

    # ------------------------------------------------------------------ persistence
    def _persist_locally(self) -> None:
        if self.local_file is not None:
            self.local_file.save(self.store.snapshot())

    async def _propagate(self) -> Optional[SyncResult]:
        """Mirror the ledger locally and push it to the remote when enabled."""

        self._persist_locally()
        if not self.engine.status.enabled:
            return None
        result = await self.engine.save(self.store.snapshot())
        if not result.success and not result.skipped:
            LOGGER.error("Failed to save ledger remotely: %s", result.error)
        return result

    # ------------------------------------------------------------------ events
    async def add_event(
        self,
        name: str,
        start_date: Optional[datetime],
        *,
        description: Optional[str] = None,
        end_date: Optional[datetime] = None,
    ) -> Event:
        await self._ensure_started()
        clean_name = _require_text(name, "Event name")
        if start_date is None:
            raise LedgerValidationError("Please select a start date")
        start_date = parse_timestamp(start_date)
        end_date = parse_timestamp(end_date) if end_date is not None else None
        if end_date is not None and end_date < start_date:
            raise LedgerValidationError("End date must not be before the start date")
        event = self.store.create_event(
            clean_name,
            start_date,
            description=(description or "").strip() or None,
            end_date=end_date,
        )
        await self._propagate()
        return event

    async def remove_event(self, event_id: str) -> Ledger:
        await self._ensure_started()
        self.store.get_event(event_id)
        ledger = self.store.delete_event(event_id)
        await self._propagate()
        return ledger

    # ------------------------------------------------------------------ heads
    async def add_expense_head(
        self, event_id: str, name: str, category: str, total_amount: object
    ) -> ExpenseHead:
        await self._ensure_started()
        clean_name = _require_text(name, "Name")
        clean_category = _require_text(category, "Category")
        amount = _require_positive(total_amount, "amount")
        self.store.get_event(event_id)
        head = self.store.create_expense_head(event_id, clean_name, clean_category, amount)
        await self._propagate()
        return head

    async def change_head_budget(self, head_id: str, new_total: object) -> ExpenseHead:
        await self._ensure_started()
        amount = _require_positive(new_total, "amount")
        self.store.get_expense_head(head_id)
        self.store.update_expense_head_amount(head_id, amount)
        await self._propagate()
        return self.store.get_expense_head(head_id)

    async def remove_expense_head(self, head_id: str) -> Ledger:
        await self._ensure_started()
        self.store.get_expense_head(head_id)
        ledger = self.store.delete_expense_head(head_id)
        await self._propagate()
        return ledger

    def history(self, head_id: str) -> Tuple[ExpenseHead, List[ExpenseEntry]]:
        """Return a head together with its payments, newest first."""

        return self.store.get_expense_head(head_id), self.store.entries_for_head(head_id)

    # ------------------------------------------------------------------ entries
    async def add_expense_entry(
        self,
        head_id: str,
        amount_paid: object,
        *,
        date: Optional[datetime] = None,
        image: Optional[str] = None,
    ) -> EntryReceipt:
        await self._ensure_started()
        if not head_id:
            raise LedgerValidationError("Please select an expense head")
        amount = _require_positive(amount_paid, "amount")
        self.store.get_expense_head(head_id)
        if image and _image_size(image) > self.max_image_bytes:
            limit_mb = self.max_image_bytes / (1024 * 1024)
            raise LedgerValidationError(f"Image size should be less than {limit_mb:g}MB")
        warning = stats.overpayment_warning(self.store.snapshot(), head_id, amount)
        if warning:
            LOGGER.warning("Head %s: %s", head_id, warning)
        entry = self.store.create_expense_entry(
            head_id,
            amount,
            date=parse_timestamp(date) if date is not None else None,
            image=image or None,
        )
        await self._propagate()
        return EntryReceipt(entry=entry, warning=warning)

    async def change_entry_amount(self, entry_id: str, new_amount: object) -> ExpenseEntry:
        await self._ensure_started()
        amount = _require_positive(new_amount, "amount")
        self.store.get_expense_entry(entry_id)
        self.store.update_expense_entry_amount(entry_id, amount)
        await self._propagate()
        return self.store.get_expense_entry(entry_id)

    async def remove_expense_entry(self, entry_id: str) -> Ledger:
        await self._ensure_started()
        self.store.get_expense_entry(entry_id)
        ledger = self.store.delete_expense_entry(entry_id)
        await self._propagate()
        return ledger

    # ------------------------------------------------------------------ display
    def overview(self) -> Dict[str, Any]:
        """Ledger figures grouped the way the dashboard presents them."""

        ledger = self.store.snapshot()
        grouped = stats.expenses_by_event(ledger)
        return {
            "events": [
                {
                    **event.as_dict(),
                    "expenseHeads": [
                        expense.as_dict() for expense in grouped.get(event.event.id, [])
                    ],
                }
                for event in stats.events_with_stats(ledger)
            ],
            "syncStatus": self.engine.status.as_dict(),
        }

    # ------------------------------------------------------------------ import/export
    def export(self) -> Tuple[str, Dict[str, Any]]:
        return export_payload(self.store.snapshot(), self._clock())

    async def import_payload(self, payload: Any) -> MergeStats:
        """Merge a file payload into the ledger; rejects malformed payloads untouched."""

        await self._ensure_started()
        result = import_into(
            self.store.snapshot(), payload, policy=self.merge_policy, now=self._clock()
        )
        self.store.replace(result.ledger)
        LOGGER.info(result.stats.summary())
        await self._propagate()
        return result.stats

    async def import_remote(self) -> MergeStats:
        """Merge the remote ledger into the local one."""

        await self._ensure_started()
        loaded = await self.engine.load()
        if not loaded.success:
            raise RemoteStoreError(f"Failed to load from remote store: {loaded.error}")
        result = merge_ledgers(self.store.snapshot(), loaded.ledger or Ledger.empty(), self.merge_policy)
        self.store.replace(result.ledger)
        await self._propagate()
        return result.stats

    # ------------------------------------------------------------------ sync
    async def manual_sync(self) -> SyncResult:
        await self._ensure_started()
        return await self.engine.sync_now(self.store.snapshot())

    async def clear_all(self, confirmation: Optional[str]) -> ClearAllOutcome:
        """Delete the remote document and empty the ledger once confirmed."""

        self.guard.check(confirmation)
        result = await self.engine.clear_remote()
        if not result.success:
            return ClearAllOutcome(
                success=False,
                message=f"Failed to clear data: {result.error}",
                status=result.status,
            )
        self.store.clear()
        self._persist_locally()
        return ClearAllOutcome(success=True, message="All data cleared", status=result.status)


def build_board(settings: EventLedgerSettings) -> LedgerBoard:
    """Create a board wired to the configured remote backend and local mirror."""

    remote: Optional[RemoteLedgerStore] = None
    if settings.remote_enabled:
        options: Dict[str, Any] = {}
        if settings.remote_provider and settings.remote_provider.lower() == "file":
            options["path"] = settings.resolved_remote_file_path
        remote = REGISTRY.create(
            settings.remote_provider or "",
            document_key=settings.remote_document_key,
            **options,
        )
    local_file = LocalLedgerFile(settings.local_file_path) if settings.local_persistence else None
    return LedgerBoard(
        engine=SyncEngine(remote),
        local_file=local_file,
        guard=ClearAllGuard(settings.clear_all_confirmation),
        merge_policy=settings.merge_policy(),
        max_image_bytes=settings.max_image_bytes,
    )
