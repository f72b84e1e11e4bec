"""Document store implementations for project persistence."""

from cipherstudio.engine.store.base import (
    DocumentKey,
    DocumentStore,
    InvalidDocumentKeyError,
    PersistenceUnavailableError,
    UnavailableDocumentStore,
)
from cipherstudio.engine.store.local import LocalDocumentStore
from cipherstudio.engine.store.memory import MemoryDocumentStore

__all__ = [
    "DocumentKey",
    "DocumentStore",
    "InvalidDocumentKeyError",
    "LocalDocumentStore",
    "MemoryDocumentStore",
    "PersistenceUnavailableError",
    "UnavailableDocumentStore",
]
