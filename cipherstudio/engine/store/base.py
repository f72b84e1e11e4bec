"""Document store interface for project persistence.

A document is a JSON-compatible dict addressed by ``(namespace, owner_id,
project_id)``.  Writes default to *merge* semantics: top-level fields
missing from the written dict are preserved on the stored document, while
fields that are present replace the stored value wholesale.

The interface is async to support both local filesystem and remote (S3)
backends.  A store that is not configured is represented by
``UnavailableDocumentStore`` rather than ``None``; callers check
``available`` once instead of null-checking everywhere.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9._\-]+$")


class PersistenceUnavailableError(RuntimeError):
    """Raised when no document store is configured (local-only mode)."""


class InvalidDocumentKeyError(ValueError):
    """Raised when a key segment is not a safe path component."""


@dataclass(frozen=True)
class DocumentKey:
    """Address of one project document."""

    namespace: str
    owner_id: str
    project_id: str

    def __post_init__(self) -> None:
        for segment in (self.namespace, self.owner_id, self.project_id):
            if not _SEGMENT_RE.match(segment) or segment in (".", ".."):
                msg = f"Invalid document key segment: {segment!r}"
                raise InvalidDocumentKeyError(msg)

    def collection_parts(self) -> tuple[str, ...]:
        return owner_collection(self.namespace, self.owner_id)

    def parts(self) -> tuple[str, ...]:
        return (*self.collection_parts(), self.project_id)


def owner_collection(namespace: str, owner_id: str) -> tuple[str, ...]:
    """Path segments of an owner's project collection."""
    return ("artifacts", namespace, "users", owner_id, "projects")


def merge_document(existing: dict[str, Any] | None, data: dict[str, Any], *, merge: bool) -> dict[str, Any]:
    """Apply a (possibly merging) write to an existing document."""
    if not merge or existing is None:
        return dict(data)
    return {**existing, **data}


@runtime_checkable
class DocumentStore(Protocol):
    """Async protocol for reading and writing project documents."""

    @property
    def available(self) -> bool: ...

    async def write(self, key: DocumentKey, data: dict[str, Any], *, merge: bool = True) -> None:
        """Write a document, merging top-level fields by default."""
        ...

    async def read(self, key: DocumentKey) -> dict[str, Any] | None:
        """Read a document.  Returns ``None`` if absent."""
        ...

    async def delete(self, key: DocumentKey) -> None:
        """Delete a document.  No-op if absent."""
        ...

    async def list_documents(self, namespace: str, owner_id: str) -> list[dict[str, Any]]:
        """All documents in an owner's collection (unordered)."""
        ...


class UnavailableDocumentStore:
    """Stand-in used when persistence is not configured."""

    @property
    def available(self) -> bool:
        return False

    async def write(self, key: DocumentKey, data: dict[str, Any], *, merge: bool = True) -> None:
        raise PersistenceUnavailableError("Document store not configured")

    async def read(self, key: DocumentKey) -> dict[str, Any] | None:
        raise PersistenceUnavailableError("Document store not configured")

    async def delete(self, key: DocumentKey) -> None:
        raise PersistenceUnavailableError("Document store not configured")

    async def list_documents(self, namespace: str, owner_id: str) -> list[dict[str, Any]]:
        raise PersistenceUnavailableError("Document store not configured")
