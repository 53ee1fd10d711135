"""Mini README: Process-local remote store.

Structure:
    * MemoryRemoteStore - keeps ledger documents in a dictionary.

Useful for demos and tests: it honours the full remote contract without any
network, and several instances can share one ``documents`` mapping to
simulate two devices writing to the same table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from ...ledger.models import Ledger, utc_now
from ...logging_utils import get_logger
from ..base import RemoteLedgerStore, RemoteSnapshot
from ..registry import REGISTRY

LOGGER = get_logger(__name__)


class MemoryRemoteStore(RemoteLedgerStore):
    """Remote store backed by an in-process dictionary."""

    provider_name = "memory"

    def __init__(
        self,
        document_key: str = "expense-data",
        documents: Optional[Dict[str, RemoteSnapshot]] = None,
    ) -> None:
        super().__init__(document_key=document_key)
        self.documents: Dict[str, RemoteSnapshot] = documents if documents is not None else {}

    async def get(self) -> Optional[RemoteSnapshot]:
        snapshot = self.documents.get(self.document_key)
        if snapshot is None:
            return None
        return RemoteSnapshot(ledger=snapshot.ledger.copy(), last_modified=snapshot.last_modified)

    async def put(self, ledger: Ledger) -> datetime:
        timestamp = utc_now()
        self.documents[self.document_key] = RemoteSnapshot(ledger=ledger.copy(), last_modified=timestamp)
        LOGGER.debug("Stored ledger document '%s' in memory", self.document_key)
        return timestamp

    async def delete(self) -> None:
        self.documents.pop(self.document_key, None)


REGISTRY.register(MemoryRemoteStore)
