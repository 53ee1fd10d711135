"""Mini README: Core package initializer for the event ledger.

Event-scoped budgets ("expense heads") and the payments recorded against them,
kept consistent between a local copy and a remote ledger store. The package is
laid out leaves first: ``ledger`` (model, store, stats, reconciliation),
``remote`` (store interface and backends), ``sync`` (state machine), ``board``
(orchestration) and ``interface`` (HTTP).
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
