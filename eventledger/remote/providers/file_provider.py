"""Mini README: Remote store persisted as a JSON document on disk.

Structure:
    * FileRemoteStore - keyed ledger documents inside a single JSON file.

The file layout mirrors a key/value table: ``{key: {"data": ledger,
"lastModified": iso}}``. Pointing several machines at a shared directory
gives a crude remote; other keys in the file are left untouched. Disk I/O runs
in a worker thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ...errors import LedgerFormatError, RemoteStoreError
from ...ledger.models import Ledger, format_timestamp, parse_timestamp, utc_now
from ...logging_utils import get_logger
from ..base import RemoteLedgerStore, RemoteSnapshot
from ..registry import REGISTRY

LOGGER = get_logger(__name__)


class FileRemoteStore(RemoteLedgerStore):
    """Remote store writing ledger documents to a JSON file."""

    provider_name = "file"

    def __init__(self, document_key: str = "expense-data", path: Optional[Path] = None) -> None:
        super().__init__(document_key=document_key)
        if path is None:
            raise ValueError("The file remote store requires a document path")
        self.path = Path(path)

    def _read_table(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            table = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            raise RemoteStoreError(f"Failed to read {self.path}: {error}") from error
        if not isinstance(table, dict):
            raise RemoteStoreError(f"Remote document {self.path} is not a JSON object")
        return table

    def _write_table(self, table: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temporary = self.path.with_suffix(self.path.suffix + ".tmp")
            temporary.write_text(json.dumps(table, indent=2), encoding="utf-8")
            temporary.replace(self.path)
        except OSError as error:
            raise RemoteStoreError(f"Failed to write {self.path}: {error}") from error

    def _get(self) -> Optional[RemoteSnapshot]:
        item = self._read_table().get(self.document_key)
        if not item or not item.get("data"):
            return None
        try:
            ledger = Ledger.from_dict(item["data"])
            last_modified = parse_timestamp(item["lastModified"]) if item.get("lastModified") else None
        except LedgerFormatError as error:
            raise RemoteStoreError(f"Stored ledger is malformed: {error}") from error
        return RemoteSnapshot(ledger=ledger, last_modified=last_modified)

    def _put(self, ledger: Ledger) -> datetime:
        table = self._read_table()
        timestamp = utc_now()
        table[self.document_key] = {
            "data": ledger.as_dict(),
            "lastModified": format_timestamp(timestamp),
        }
        self._write_table(table)
        LOGGER.debug("Wrote ledger document '%s' to %s", self.document_key, self.path)
        return timestamp

    def _delete(self) -> None:
        table = self._read_table()
        if table.pop(self.document_key, None) is not None:
            self._write_table(table)

    async def get(self) -> Optional[RemoteSnapshot]:
        return await asyncio.to_thread(self._get)

    async def put(self, ledger: Ledger) -> datetime:
        return await asyncio.to_thread(self._put, ledger)

    async def delete(self) -> None:
        await asyncio.to_thread(self._delete)

    def metadata(self) -> Dict[str, str]:
        details = super().metadata()
        details["path"] = str(self.path)
        return details


REGISTRY.register(FileRemoteStore)
