"""Local filesystem document store.

Stores each project as a JSON file under a data root with optional
namespace prefix::

    {data_root}/{prefix}/artifacts/{namespace}/users/{owner_id}/projects/{project_id}.json

When prefix is None, the path collapses to::

    {data_root}/artifacts/{namespace}/users/{owner_id}/projects/{project_id}.json

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.  A merge write
(read, update, write) runs as one call in the worker thread, and the write
itself is atomic: data goes to a temporary file in the same directory which
is then renamed over the target.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from functools import partial
from pathlib import Path
from typing import Any

from anyio import to_thread

from cipherstudio.engine.store.base import DocumentKey, merge_document, owner_collection


class LocalDocumentStore:
    """Local filesystem implementation of the DocumentStore protocol."""

    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        base = Path(data_root)
        if prefix:
            base = base / prefix
        self._base = base

    @property
    def available(self) -> bool:
        return True

    def _path(self, key: DocumentKey) -> Path:
        return self._base.joinpath(*key.collection_parts()) / f"{key.project_id}.json"

    # -- Write -----------------------------------------------------------------

    async def write(self, key: DocumentKey, data: dict[str, Any], *, merge: bool = True) -> None:
        await to_thread.run_sync(partial(_merge_write, self._path(key), data, merge))

    # -- Read ------------------------------------------------------------------

    async def read(self, key: DocumentKey) -> dict[str, Any] | None:
        return await to_thread.run_sync(partial(_read_json, self._path(key)))

    async def list_documents(self, namespace: str, owner_id: str) -> list[dict[str, Any]]:
        directory = self._base.joinpath(*owner_collection(namespace, owner_id))
        return await to_thread.run_sync(partial(_read_all, directory))

    # -- Utilities -------------------------------------------------------------

    async def delete(self, key: DocumentKey) -> None:
        await to_thread.run_sync(partial(_unlink, self._path(key)))


# -- Sync helpers (run in thread pool) -----------------------------------------


def _merge_write(path: Path, data: dict[str, Any], merge: bool) -> None:
    existing = _read_json(path) if merge else None
    _atomic_write(path, json.dumps(merge_document(existing, data, merge=merge), indent=2))


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    Ensures readers never see a partially-written file.  The temp file is
    created in the same directory so ``os.replace`` is atomic on POSIX.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _read_json(path: Path) -> dict[str, Any] | None:
    """Read a JSON document.  Returns ``None`` if missing."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return json.loads(raw)


def _read_all(directory: Path) -> list[dict[str, Any]]:
    if not directory.is_dir():
        return []
    docs = []
    for path in sorted(directory.glob("*.json")):
        doc = _read_json(path)
        if doc is not None:
            docs.append(doc)
    return docs


def _unlink(path: Path) -> None:
    """Remove a file.  No-op if it doesn't exist."""
    path.unlink(missing_ok=True)
