"""Mini README: Abstract interface for remote ledger stores.

Structure:
    * RemoteSnapshot - ledger blob read back from the remote together with its timestamp.
    * RemoteLedgerStore - abstract interface implemented by storage backends.

A remote store keeps exactly one ledger document under a fixed, pre-agreed
key. Backends implement whole-document ``get``/``put``/``delete`` coroutines
and raise ``RemoteStoreError`` for transport or service failures; retries and
timeouts are the backend's own business. There is no version check on
``put``: the last writer wins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from ..ledger.models import Ledger
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class RemoteSnapshot:
    """Ledger document as stored remotely."""

    ledger: Ledger
    last_modified: Optional[datetime] = None


class RemoteLedgerStore(ABC):
    """Base interface for remote ledger backends."""

    provider_name: str = "generic"

    def __init__(self, document_key: str = "expense-data") -> None:
        self.document_key = document_key
        LOGGER.debug(
            "Initialising %s remote store for document '%s'", self.provider_name, document_key
        )

    @abstractmethod
    async def get(self) -> Optional[RemoteSnapshot]:
        """Return the stored ledger, or ``None`` when no document exists yet."""

    @abstractmethod
    async def put(self, ledger: Ledger) -> datetime:
        """Replace the stored ledger and return the timestamp recorded with it."""

    @abstractmethod
    async def delete(self) -> None:
        """Remove the stored ledger document."""

    def metadata(self) -> Dict[str, str]:
        """Return diagnostic metadata for status displays."""

        return {
            "provider": self.provider_name,
            "document": self.document_key,
        }
