"""Mini README: Shared builders and fake remote stores for the test-suite.

Structure:
    * FIXED_NOW - deterministic clock value used across tests.
    * counter_ids - predictable identifier factory for ``LedgerStore``.
    * RecordingRemoteStore - in-memory backend that counts calls and can be
      told to fail or to hold requests open until released.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Callable, List, Optional

from eventledger.errors import RemoteStoreError
from eventledger.ledger.models import Ledger
from eventledger.remote.base import RemoteLedgerStore, RemoteSnapshot

FIXED_NOW = datetime(2024, 6, 1, 12, 30, 45, tzinfo=timezone.utc)


def counter_ids() -> Callable[[str], str]:
    counter = itertools.count(1)
    return lambda kind: f"{kind}_{next(counter):04d}"


class RecordingRemoteStore(RemoteLedgerStore):
    """Fake backend recording every call made by the sync engine."""

    provider_name = "recording"

    def __init__(self, snapshot: Optional[RemoteSnapshot] = None) -> None:
        super().__init__(document_key="test-ledger")
        self.snapshot = snapshot
        self.puts: List[Ledger] = []
        self.gets = 0
        self.deletes = 0
        self.failure: Optional[str] = None
        self.release: Optional[asyncio.Event] = None

    async def _maybe_wait_and_fail(self) -> None:
        if self.release is not None:
            await self.release.wait()
        if self.failure:
            raise RemoteStoreError(self.failure)

    async def get(self) -> Optional[RemoteSnapshot]:
        self.gets += 1
        await self._maybe_wait_and_fail()
        return self.snapshot

    async def put(self, ledger: Ledger) -> datetime:
        self.puts.append(ledger)
        await self._maybe_wait_and_fail()
        self.snapshot = RemoteSnapshot(ledger=ledger.copy(), last_modified=FIXED_NOW)
        return FIXED_NOW

    async def delete(self) -> None:
        self.deletes += 1
        await self._maybe_wait_and_fail()
        self.snapshot = None
