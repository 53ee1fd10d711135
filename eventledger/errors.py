"""Mini README: Exception taxonomy shared by the ledger, sync and board layers.

Structure:
    * LedgerError - base class for every failure raised by this package.
    * LedgerValidationError - rejected input, raised before any mutation.
    * LedgerFormatError - import payload failing the shape checks.
    * ConfirmationMismatchError - clear-all confirmation text did not match.
    * SyncConfigurationError - a remote operation was requested while sync is disabled.
    * RemoteStoreError - transport or service failure reported by a remote backend.

Validation errors subclass ``ValueError`` so callers that only know the
standard library contract keep working.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger failures."""


class LedgerValidationError(LedgerError, ValueError):
    """Input rejected before the ledger was touched."""


class LedgerFormatError(LedgerValidationError):
    """Import payload is not a ledger in either the current or legacy format."""


class ConfirmationMismatchError(LedgerValidationError):
    """Destructive operation blocked because the confirmation text differs."""

    def __init__(self, expected: str) -> None:
        super().__init__(f'Please type "{expected}" to confirm')
        self.expected = expected


class SyncConfigurationError(LedgerError):
    """Remote sync is not configured for this session."""


class RemoteStoreError(LedgerError):
    """Remote ledger store failed to complete a request."""
