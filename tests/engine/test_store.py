"""Unit tests for the local and in-memory document stores.

No external services required -- the local store uses a temporary directory.
"""

from __future__ import annotations

import json

import pytest

from cipherstudio.engine.store import (
    DocumentKey,
    DocumentStore,
    InvalidDocumentKeyError,
    LocalDocumentStore,
    MemoryDocumentStore,
    PersistenceUnavailableError,
    UnavailableDocumentStore,
)

KEY = DocumentKey(namespace="app", owner_id="owner-1", project_id="p1")


@pytest.fixture(params=["local", "memory"])
def store(request: pytest.FixtureRequest, tmp_path) -> DocumentStore:
    if request.param == "local":
        return LocalDocumentStore(tmp_path)
    return MemoryDocumentStore()


# -- Keys ----------------------------------------------------------------------


@pytest.mark.parametrize("segment", ["", ".", "..", "a/b", "a b", "../etc"])
def test_invalid_key_segments(segment: str) -> None:
    with pytest.raises(InvalidDocumentKeyError):
        DocumentKey(namespace="app", owner_id=segment, project_id="p1")


def test_key_parts() -> None:
    assert KEY.parts() == ("artifacts", "app", "users", "owner-1", "projects", "p1")


# -- Shared behaviour ----------------------------------------------------------


async def test_protocol(store: DocumentStore) -> None:
    assert isinstance(store, DocumentStore)
    assert store.available


async def test_write_and_read(store: DocumentStore) -> None:
    await store.write(KEY, {"name": "demo", "files": {"/a.py": {"path": "/a.py"}}})
    assert await store.read(KEY) == {"name": "demo", "files": {"/a.py": {"path": "/a.py"}}}


async def test_read_missing(store: DocumentStore) -> None:
    assert await store.read(KEY) is None


async def test_merge_write_preserves_absent_fields(store: DocumentStore) -> None:
    await store.write(KEY, {"name": "demo", "created_at": "t0", "files": {"/a.py": {}, "/b.py": {}}})
    await store.write(KEY, {"files": {"/a.py": {}}, "updated_at": "t1"})

    doc = await store.read(KEY)
    assert doc == {"name": "demo", "created_at": "t0", "files": {"/a.py": {}}, "updated_at": "t1"}


async def test_overwrite_without_merge(store: DocumentStore) -> None:
    await store.write(KEY, {"name": "demo", "extra": 1})
    await store.write(KEY, {"name": "fresh"}, merge=False)
    assert await store.read(KEY) == {"name": "fresh"}


async def test_delete(store: DocumentStore) -> None:
    await store.write(KEY, {"name": "demo"})
    await store.delete(KEY)
    assert await store.read(KEY) is None

    # Delete non-existent is a no-op.
    await store.delete(KEY)


async def test_list_documents_scoped_to_owner(store: DocumentStore) -> None:
    await store.write(KEY, {"id": "p1"})
    await store.write(DocumentKey("app", "owner-1", "p2"), {"id": "p2"})
    await store.write(DocumentKey("app", "owner-2", "p3"), {"id": "p3"})
    await store.write(DocumentKey("other", "owner-1", "p4"), {"id": "p4"})

    docs = await store.list_documents("app", "owner-1")
    assert sorted(doc["id"] for doc in docs) == ["p1", "p2"]
    assert await store.list_documents("app", "nobody") == []


# -- Local specifics -----------------------------------------------------------


async def test_local_layout(tmp_path) -> None:
    store = LocalDocumentStore(tmp_path)
    await store.write(KEY, {"name": "demo"})

    path = tmp_path / "artifacts" / "app" / "users" / "owner-1" / "projects" / "p1.json"
    assert json.loads(path.read_text()) == {"name": "demo"}
    # No temp files left behind.
    assert [p.name for p in path.parent.iterdir()] == ["p1.json"]


async def test_local_prefix(tmp_path) -> None:
    store = LocalDocumentStore(tmp_path, prefix="alice")
    await store.write(KEY, {"name": "demo"})
    assert (tmp_path / "alice" / "artifacts" / "app" / "users" / "owner-1" / "projects" / "p1.json").is_file()


# -- Memory specifics ----------------------------------------------------------


async def test_memory_isolates_callers_from_stored_state() -> None:
    store = MemoryDocumentStore()
    data = {"files": {"/a.py": {"content": "x"}}}
    await store.write(KEY, data)
    data["files"]["/a.py"]["content"] = "mutated"

    doc = await store.read(KEY)
    assert doc is not None
    assert doc["files"]["/a.py"]["content"] == "x"
    doc["files"].clear()
    assert await store.read(KEY) == {"files": {"/a.py": {"content": "x"}}}
    assert len(store.writes) == 1


# -- Unavailable ---------------------------------------------------------------


async def test_unavailable_store_raises() -> None:
    store = UnavailableDocumentStore()
    assert not store.available
    with pytest.raises(PersistenceUnavailableError):
        await store.write(KEY, {})
    with pytest.raises(PersistenceUnavailableError):
        await store.read(KEY)
    with pytest.raises(PersistenceUnavailableError):
        await store.delete(KEY)
    with pytest.raises(PersistenceUnavailableError):
        await store.list_documents("app", "owner-1")
