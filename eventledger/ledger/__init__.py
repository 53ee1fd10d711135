"""Mini README: Ledger domain package.

Groups the entity model, the in-memory store with its cascade rules, the
derived statistics, the merge-on-import engine and the JSON codec. Nothing in
this package performs network I/O; remote sync lives in ``eventledger.sync``.
"""

from .models import Event, ExpenseEntry, ExpenseHead, Ledger
from .reconciliation import (
    DedupPolicy,
    MergePolicy,
    MergeResult,
    MergeStats,
    import_into,
    merge_ledgers,
    normalise_import_payload,
)
from .store import LedgerStore

__all__ = [
    "DedupPolicy",
    "Event",
    "ExpenseEntry",
    "ExpenseHead",
    "Ledger",
    "LedgerStore",
    "MergePolicy",
    "MergeResult",
    "MergeStats",
    "import_into",
    "merge_ledgers",
    "normalise_import_payload",
]
