"""Mini README: Remote sync package.

Exposes the sync engine (the state machine in front of the remote store), its
status value objects and the clear-all confirmation guard.
"""

from .engine import SyncEngine
from .guard import ClearAllGuard
from .status import SyncResult, SyncState, SyncStatus

__all__ = ["ClearAllGuard", "SyncEngine", "SyncResult", "SyncState", "SyncStatus"]
