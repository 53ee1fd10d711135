"""Mini README: Built-in remote ledger store backends.

New backends should export a subclass of ``RemoteLedgerStore`` and call
``REGISTRY.register`` during module import to keep the system discoverable.
"""

from .file_provider import FileRemoteStore
from .memory_provider import MemoryRemoteStore

__all__ = ["FileRemoteStore", "MemoryRemoteStore"]
