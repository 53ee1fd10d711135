"""Mini README: Remote ledger store subsystem.

Re-exports the abstract store interface, the backend registry and the
built-in providers. ``base`` holds the interface, ``registry`` the plugin
lookup and ``providers`` the concrete backends.
"""

from .base import RemoteLedgerStore, RemoteSnapshot
from .registry import REGISTRY, RemoteStoreRegistry
from . import providers  # noqa: F401  # ensure built-in providers register on import

__all__ = [
    "REGISTRY",
    "RemoteLedgerStore",
    "RemoteSnapshot",
    "RemoteStoreRegistry",
]
