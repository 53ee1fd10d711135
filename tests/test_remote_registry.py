"""Mini README: Tests for the remote store registry and built-in backends.

Ensures that backends register correctly, instantiation honours the document
key, and the file backend keeps other documents in its table untouched.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from eventledger.errors import RemoteStoreError
from eventledger.ledger import Ledger
from eventledger.ledger.models import Event
from eventledger.remote import REGISTRY, RemoteLedgerStore
from eventledger.remote.providers import FileRemoteStore, MemoryRemoteStore

from .helpers import FIXED_NOW


def _ledger() -> Ledger:
    return Ledger(events=[Event(id="ev1", name="Wedding", start_date=FIXED_NOW, created_at=FIXED_NOW)])


def test_registry_contains_builtin_providers() -> None:
    assert {"file", "memory"} <= set(REGISTRY.available_providers())


def test_registry_instantiates_provider() -> None:
    store = REGISTRY.create("MEMORY", document_key="shared")
    assert isinstance(store, RemoteLedgerStore)
    assert store.metadata() == {"provider": "memory", "document": "shared"}


def test_registry_rejects_unknown_provider() -> None:
    with pytest.raises(KeyError):
        REGISTRY.create("dynamo", document_key="x")


@pytest.mark.asyncio
async def test_memory_stores_share_documents() -> None:
    """Two clients on one table see each other's writes; the last writer wins."""

    documents: dict = {}
    first = MemoryRemoteStore("expense-data", documents)
    second = MemoryRemoteStore("expense-data", documents)

    await first.put(_ledger())
    await second.put(Ledger.empty())
    snapshot = await first.get()

    assert snapshot is not None
    assert snapshot.ledger == Ledger.empty()


@pytest.mark.asyncio
async def test_file_store_keeps_other_documents(tmp_path: Path) -> None:
    path = tmp_path / "remote.json"
    path.write_text(json.dumps({"other": {"data": {"keep": True}}}), encoding="utf-8")
    store = FileRemoteStore("expense-data", path=path)

    assert await store.get() is None
    timestamp = await store.put(_ledger())
    snapshot = await store.get()

    assert snapshot is not None
    assert snapshot.ledger == _ledger()
    assert snapshot.last_modified == timestamp

    await store.delete()
    table = json.loads(path.read_text(encoding="utf-8"))
    assert table == {"other": {"data": {"keep": True}}}


@pytest.mark.asyncio
async def test_file_store_reports_corrupt_documents(tmp_path: Path) -> None:
    path = tmp_path / "remote.json"
    path.write_text("{not json", encoding="utf-8")
    store = FileRemoteStore("expense-data", path=path)

    with pytest.raises(RemoteStoreError):
        await store.get()
