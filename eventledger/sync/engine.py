"""Mini README: Sync state machine mediating every remote ledger operation.

Structure:
    * SyncEngine - owns a ``SyncStatus`` and the optional remote store.

States and transitions:
    * No remote configured -> ``disabled`` for the whole session; saves and
      clears fail fast with ``SyncConfigurationError``.
    * ``idle`` -> ``syncing`` when a load, save or delete starts. A request that
      arrives while another is in flight is skipped and logged, never queued.
    * Success clears ``last_error`` and stamps ``last_sync``; failure records
      ``last_error`` and leaves ``last_sync`` alone. Either way the engine
      returns to ``idle``.

The in-flight flag is checked and set before the first ``await`` and cleared in
a ``finally`` block, so under a single asyncio loop at most one remote request
is ever outstanding. There is no timeout: a remote call that never settles
leaves the engine in ``syncing``.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, Optional

from ..errors import SyncConfigurationError
from ..ledger.models import Ledger, utc_now
from ..logging_utils import get_logger
from ..remote.base import RemoteLedgerStore
from .status import SyncResult, SyncStatus

LOGGER = get_logger(__name__)

NOT_CONFIGURED = "Cloud sync not configured"
IN_PROGRESS = "A sync is already in progress"


class SyncEngine:
    """Gatekeeper between the ledger board and a remote ledger store."""

    def __init__(
        self,
        remote: Optional[RemoteLedgerStore] = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._remote = remote
        self._clock = clock
        self._status = SyncStatus(enabled=remote is not None)
        LOGGER.debug("Sync engine initialised in state %s", self._status.state.value)

    @property
    def status(self) -> SyncStatus:
        """Return a copy of the current status."""

        return self._status.copy()

    @property
    def remote(self) -> Optional[RemoteLedgerStore]:
        return self._remote

    @contextmanager
    def _in_flight(self) -> Iterator[None]:
        self._status.syncing = True
        try:
            yield
        finally:
            self._status.syncing = False

    def _require_enabled(self) -> RemoteLedgerStore:
        if self._remote is None:
            raise SyncConfigurationError(NOT_CONFIGURED)
        return self._remote

    def _skip(self, operation: str) -> SyncResult:
        LOGGER.info("Skipping %s: %s", operation, IN_PROGRESS.lower())
        return SyncResult(status=self.status, success=False, skipped=True, error=IN_PROGRESS)

    def _succeed(self, timestamp: Optional[datetime], **extra: object) -> SyncResult:
        self._status.last_sync = timestamp or self._clock()
        self._status.last_error = None
        return SyncResult(
            status=self.status, success=True, timestamp=self._status.last_sync, **extra
        )

    def _fail(self, operation: str, error: Exception, **extra: object) -> SyncResult:
        message = str(error) or error.__class__.__name__
        self._status.last_error = message
        LOGGER.warning("Remote %s failed: %s", operation, message)
        return SyncResult(status=self.status, success=False, error=message, **extra)

    async def initialise(self) -> SyncResult:
        """Resolve the startup state and perform the initial remote load.

        When sync is disabled the result is unsuccessful and carries an empty
        ledger; the caller decides whether a local copy may be used instead.
        """

        if self._remote is None:
            LOGGER.warning("%s; remote operations are disabled for this session", NOT_CONFIGURED)
            return SyncResult(
                status=self.status, success=False, error=NOT_CONFIGURED, ledger=Ledger.empty()
            )
        return await self.load()

    async def load(self) -> SyncResult:
        """Read the remote ledger; failures yield an empty ledger and ``last_error``."""

        remote = self._require_enabled()
        if self._status.syncing:
            return self._skip("load")
        with self._in_flight():
            try:
                snapshot = await remote.get()
            except Exception as error:
                result = self._fail("load", error, ledger=Ledger.empty())
            else:
                if snapshot is None:
                    LOGGER.info("Remote store holds no ledger yet")
                    result = self._succeed(None, ledger=Ledger.empty())
                else:
                    LOGGER.info("Loaded remote ledger %s", snapshot.ledger.counts())
                    result = self._succeed(snapshot.last_modified, ledger=snapshot.ledger)
        result.status = self.status
        return result

    async def save(self, ledger: Ledger) -> SyncResult:
        """Write the whole ledger to the remote store."""

        remote = self._require_enabled()
        if self._status.syncing:
            return self._skip("save")
        with self._in_flight():
            try:
                timestamp = await remote.put(ledger)
            except Exception as error:
                result = self._fail("save", error)
            else:
                LOGGER.info("Saved ledger to remote store %s", ledger.counts())
                result = self._succeed(timestamp)
        result.status = self.status
        return result

    async def sync_now(self, ledger: Ledger) -> SyncResult:
        """Manually triggered save with the same guard rules as ``save``."""

        LOGGER.info("Manual sync requested")
        return await self.save(ledger)

    async def clear_remote(self) -> SyncResult:
        """Delete the remote ledger document; only allowed while idle."""

        remote = self._require_enabled()
        if self._status.syncing:
            return self._skip("clear")
        with self._in_flight():
            try:
                await remote.delete()
            except Exception as error:
                result = self._fail("clear", error)
            else:
                LOGGER.warning("Remote ledger document deleted")
                result = self._succeed(None)
        result.status = self.status
        return result
