"""Mini README: JSON codec and local file persistence for ledgers.

Structure:
    * export_filename - deterministic ``expenses-<date>-<time>.json`` names.
    * dump_ledger / export_payload - serialise a ledger for download or disk.
    * load_payload - decode an uploaded file into a raw payload (shape checks
      happen in ``reconciliation.normalise_import_payload``).
    * LocalLedgerFile - mirror of the ledger kept inside the data directory.

The local mirror is best effort: read failures fall back to an empty ledger
and write failures are logged, matching how the board treats local storage as
a convenience copy rather than the source of truth once remote sync is on.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..errors import LedgerFormatError
from ..logging_utils import get_logger
from .models import Ledger

LOGGER = get_logger(__name__)


def export_filename(moment: datetime) -> str:
    """Return the export file name for ``moment`` down to the second."""

    return f"expenses-{moment:%Y-%m-%d}-{moment:%H-%M-%S}.json"


def dump_ledger(ledger: Ledger) -> str:
    return json.dumps(ledger.as_dict(), indent=2)


def export_payload(ledger: Ledger, moment: datetime) -> Tuple[str, Dict[str, Any]]:
    """Pair the export file name with the serialisable ledger body."""

    return export_filename(moment), ledger.as_dict()


def load_payload(raw: str | bytes) -> Any:
    """Decode JSON text from an import file."""

    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise LedgerFormatError(f"Import file is not valid JSON: {error}") from error


class LocalLedgerFile:
    """Persist the ledger to a single JSON document on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path
        LOGGER.debug("Local ledger file set to %s", self.path)

    def load(self) -> Ledger:
        if not self.path.exists():
            return Ledger.empty()
        try:
            return Ledger.from_dict(load_payload(self.path.read_text(encoding="utf-8")))
        except (OSError, LedgerFormatError) as error:
            LOGGER.error("Error loading ledger from %s: %s", self.path, error)
            return Ledger.empty()

    def save(self, ledger: Ledger) -> Optional[Path]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(dump_ledger(ledger), encoding="utf-8")
        except OSError as error:
            LOGGER.error("Error saving ledger to %s: %s", self.path, error)
            return None
        return self.path
