"""Mini README: Explicit sync status value objects.

Structure:
    * SyncState - ``disabled``, ``idle`` or ``syncing``.
    * SyncStatus - enabled flag, in-flight flag, last sync time and last error.
    * SyncResult - outcome of one engine operation with the status it left behind.

``lastError`` is orthogonal to the state: it survives a return to ``idle``
after a failed attempt and is cleared by the next successful operation.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from ..ledger.models import Ledger, format_timestamp


class SyncState(str, Enum):
    """Enumerate the states of the sync state machine."""

    DISABLED = "disabled"
    IDLE = "idle"
    SYNCING = "syncing"


@dataclass(slots=True)
class SyncStatus:
    """Snapshot of the sync engine's bookkeeping."""

    enabled: bool
    syncing: bool = False
    last_sync: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def state(self) -> SyncState:
        if not self.enabled:
            return SyncState.DISABLED
        if self.syncing:
            return SyncState.SYNCING
        return SyncState.IDLE

    def copy(self) -> "SyncStatus":
        return dataclasses.replace(self)

    def as_dict(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "enabled": self.enabled,
            "syncing": self.syncing,
            "lastSync": format_timestamp(self.last_sync) if self.last_sync else None,
            "error": self.last_error,
        }


@dataclass(slots=True)
class SyncResult:
    """What happened during a single load, save or delete."""

    status: SyncStatus
    success: bool
    skipped: bool = False
    error: Optional[str] = None
    timestamp: Optional[datetime] = None
    ledger: Optional[Ledger] = None
