"""In-memory document store.

Process-local and ephemeral; useful for development (``CIPHER_DOCUMENT_STORE
=memory``) and as a fast test double.  Stored documents are deep-copied on
the way in and out so callers never share mutable state with the store.
"""

from __future__ import annotations

import copy
from typing import Any

from cipherstudio.engine.store.base import DocumentKey, merge_document


class MemoryDocumentStore:
    def __init__(self) -> None:
        self._docs: dict[DocumentKey, dict[str, Any]] = {}
        self.writes: list[tuple[DocumentKey, dict[str, Any]]] = []
        """Every write in order (for diagnostics and tests)."""

    @property
    def available(self) -> bool:
        return True

    async def write(self, key: DocumentKey, data: dict[str, Any], *, merge: bool = True) -> None:
        data = copy.deepcopy(data)
        self.writes.append((key, data))
        self._docs[key] = merge_document(self._docs.get(key), data, merge=merge)

    async def read(self, key: DocumentKey) -> dict[str, Any] | None:
        doc = self._docs.get(key)
        return copy.deepcopy(doc) if doc is not None else None

    async def delete(self, key: DocumentKey) -> None:
        self._docs.pop(key, None)

    async def list_documents(self, namespace: str, owner_id: str) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(doc)
            for key, doc in self._docs.items()
            if key.namespace == namespace and key.owner_id == owner_id
        ]
