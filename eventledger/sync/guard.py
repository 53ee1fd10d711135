"""Mini README: Confirmation gate for destructive operations.

Structure:
    * ClearAllGuard - compares caller supplied text with the expected token.

The comparison is exact and case-sensitive; no trimming is applied, so
``"delete all"`` or ``"DELETE ALL "`` never unlock a clear-all.
"""

from __future__ import annotations

from ..errors import ConfirmationMismatchError
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIRMATION = "DELETE ALL"


class ClearAllGuard:
    """Block a clear-all unless the exact confirmation text is supplied."""

    def __init__(self, expected: str = DEFAULT_CONFIRMATION) -> None:
        if not expected:
            raise ValueError("Confirmation token must not be empty")
        self.expected = expected

    def is_confirmed(self, text: str | None) -> bool:
        return text == self.expected

    def check(self, text: str | None) -> None:
        """Raise ``ConfirmationMismatchError`` unless ``text`` matches exactly."""

        if not self.is_confirmed(text):
            LOGGER.warning("Clear-all blocked: confirmation text did not match")
            raise ConfirmationMismatchError(self.expected)
