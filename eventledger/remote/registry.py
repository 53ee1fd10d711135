"""Mini README: Registry of remote ledger store backends.

Structure:
    * RemoteStoreRegistry - maps backend identifiers to ``RemoteLedgerStore`` classes.
    * REGISTRY - process-wide registry the built-in providers register into.

Alternative backends plug in by subclassing ``RemoteLedgerStore`` and calling
``REGISTRY.register`` at import time; the sync engine only ever sees the
abstract interface.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Type

from ..logging_utils import get_logger
from .base import RemoteLedgerStore

LOGGER = get_logger(__name__)


class RemoteStoreRegistry:
    """Simple registry for mapping backend identifiers to classes."""

    def __init__(self) -> None:
        self._providers: Dict[str, Type[RemoteLedgerStore]] = {}

    def register(self, provider: Type[RemoteLedgerStore]) -> None:
        """Register a new backend class with the registry."""

        identifier = provider.provider_name.lower()
        LOGGER.debug("Registering remote store '%s'", identifier)
        self._providers[identifier] = provider

    def available_providers(self) -> Iterable[str]:
        """Return iterable of backend identifiers for display."""

        return sorted(self._providers.keys())

    def create(self, identifier: str, *, document_key: str, **options: Any) -> RemoteLedgerStore:
        """Instantiate the backend matching the identifier."""

        provider_cls = self._providers.get(identifier.lower())
        if not provider_cls:
            raise KeyError(f"Unknown remote store '{identifier}'")
        LOGGER.info("Creating remote store '%s'", identifier)
        return provider_cls(document_key=document_key, **options)


REGISTRY = RemoteStoreRegistry()
