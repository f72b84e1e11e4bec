"""Persistence gateway -- project documents in the document store.

Documents are keyed by ``(app_namespace, owner_id, project_id)``.  Every write
is a merge-write: top-level fields absent from the write survive on the
stored document.  ``files`` is always written as a whole map, so a file
deleted from the workspace does not come back on the next load.

Without an owner or project id the gateway runs in local-only mode: writes
and deletes return immediately without touching the store.

Failures are split in two:

- ``PersistenceUnavailableError``: no store is configured.
- ``RemoteError``: the store was reached but the operation failed.

``autosave`` never raises; its failures are logged and published as
``autosave_failed`` for diagnostics.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import ValidationError

from cipherstudio.engine.models.enums import EventType
from cipherstudio.engine.models.project import PersistedProject
from cipherstudio.engine.store.base import DocumentKey, InvalidDocumentKeyError, PersistenceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from cipherstudio.engine.events import EventBus
    from cipherstudio.engine.models.project import ProjectSnapshot
    from cipherstudio.engine.store.base import DocumentStore


class ProjectNotFoundError(LookupError):
    """Raised when a project document does not exist."""


class RemoteError(RuntimeError):
    """Raised when the document store rejects or fails an operation."""


def default_project_name(project_id: str) -> str:
    return f"Project {project_id}"


class PersistenceGateway:
    """Reads and writes project documents on behalf of the workspace."""

    def __init__(self, store: DocumentStore, *, namespace: str, bus: EventBus | None = None) -> None:
        self._store = store
        self._namespace = namespace
        self._bus = bus

    @property
    def available(self) -> bool:
        return self._store.available

    # -- Write -----------------------------------------------------------------

    async def save(
        self,
        owner_id: str | None,
        project_id: str | None,
        snapshot: ProjectSnapshot,
        name: str | None = None,
    ) -> PersistedProject | None:
        """Merge-write the snapshot.  Returns the stored project, or ``None`` in local-only mode."""
        if not owner_id or not project_id:
            return None
        key = self._key(owner_id, project_id)
        existing = await self._remote("read", self._store.read, key)
        data = self._build_document(owner_id, project_id, snapshot, name, existing)
        await self._remote("write", self._store.write, key, data)

        logger.info("Project saved: {} (owner={})", project_id, owner_id)
        return _to_project(project_id, {**(existing or {}), **data})

    async def autosave(self, owner_id: str | None, project_id: str | None, snapshot: ProjectSnapshot) -> bool:
        """Best-effort save.  Returns whether a write happened."""
        try:
            saved = await self.save(owner_id, project_id, snapshot)
        except PersistenceUnavailableError:
            logger.debug("Autosave skipped: document store not configured")
            return False
        except RemoteError as exc:
            logger.warning("Autosave failed for project {}: {}", project_id, exc)
            if self._bus is not None:
                self._bus.publish(EventType.AUTOSAVE_FAILED, project_id=project_id, error=str(exc))
            return False
        if saved is not None:
            logger.debug("Autosaved project {}", project_id)
        return saved is not None

    async def delete(self, owner_id: str | None, project_id: str | None) -> bool:
        """Delete a project document.  Returns ``False`` in local-only mode."""
        if not owner_id or not project_id:
            return False
        await self._remote("delete", self._store.delete, self._key(owner_id, project_id))
        logger.info("Project deleted: {} (owner={})", project_id, owner_id)
        return True

    # -- Read ------------------------------------------------------------------

    async def load(self, owner_id: str | None, project_id: str | None) -> PersistedProject:
        """Load a project.

        Raises:
            ProjectNotFoundError: If the document does not exist, no
                owner/project id is given, or the id is not a valid key.
        """
        if not owner_id or not project_id:
            msg = f"Project ID {project_id} not found."
            raise ProjectNotFoundError(msg)
        doc = await self._remote("read", self._store.read, self._key(owner_id, project_id))
        if doc is None:
            msg = f"Project ID {project_id} not found."
            raise ProjectNotFoundError(msg)
        try:
            return _to_project(project_id, doc)
        except ValidationError as exc:
            msg = f"Project {project_id} is malformed: {exc}"
            raise RemoteError(msg) from exc

    async def list_projects(self, owner_id: str | None) -> list[PersistedProject]:
        """All projects of an owner, most recently updated first."""
        if not owner_id:
            return []
        docs = await self._remote("list", self._store.list_documents, self._namespace, owner_id)
        projects: list[PersistedProject] = []
        for doc in docs:
            project_id = doc.get("id")
            if not project_id:
                continue
            try:
                projects.append(_to_project(str(project_id), doc))
            except ValidationError:
                logger.warning("Skipping malformed project document {}", project_id)
        epoch = datetime.min.replace(tzinfo=UTC)
        projects.sort(key=lambda p: p.updated_at or epoch, reverse=True)
        return projects

    # -- Internal --------------------------------------------------------------

    def _key(self, owner_id: str, project_id: str) -> DocumentKey:
        try:
            return DocumentKey(namespace=self._namespace, owner_id=owner_id, project_id=project_id)
        except InvalidDocumentKeyError:
            msg = f"Project ID {project_id} not found."
            raise ProjectNotFoundError(msg) from None

    def _build_document(
        self,
        owner_id: str,
        project_id: str,
        snapshot: ProjectSnapshot,
        name: str | None,
        existing: dict[str, Any] | None,
    ) -> dict[str, Any]:
        now = datetime.now(UTC).isoformat()
        data: dict[str, Any] = {
            "id": project_id,
            "owner_id": owner_id,
            "language_id": snapshot.language_id,
            "files": {path: node.model_dump(mode="json") for path, node in snapshot.files.items()},
            "updated_at": now,
        }
        if not existing or not existing.get("created_at"):
            data["created_at"] = now
        if name:
            data["name"] = name
        elif not existing or not existing.get("name"):
            data["name"] = default_project_name(project_id)
        return data

    async def _remote(self, action: str, fn: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        if not self._store.available:
            raise PersistenceUnavailableError("Document store not configured")
        try:
            return await fn(*args)
        except PersistenceUnavailableError:
            raise
        except Exception as exc:
            msg = f"Document store {action} failed: {exc}"
            raise RemoteError(msg) from exc


def _to_project(project_id: str, doc: dict[str, Any]) -> PersistedProject:
    project = PersistedProject.model_validate({**doc, "id": project_id})
    if not project.name:
        project.name = default_project_name(project_id)
    return project
