"""Workspace controller -- owns the single live Workspace.

Every mutation of the workspace (language, files, selection, project id)
goes through this class.  Each operation replaces or mutates state in one
synchronous step after its awaits complete, so observers never see a
half-applied transition.  State changes are published on the ``EventBus``.

Three timers are owned here, all scheduled on the injected ``Clock``:

- **Autosave**: armed only while the session is ready, a project id exists
  and autosave is enabled.  Re-armed on every transition that changes one of
  those three inputs; a tick carrying a stale project id does nothing.
- **Status clear**: user-visible status messages disappear after
  ``status_clear_delay``; a newer message cancels the older timer.

Persistence failures during explicit save/load/delete surface as a
transient status message.  A missing document store degrades silently.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Any

from loguru import logger

from cipherstudio.engine.context import Workspace
from cipherstudio.engine.filetree import FileTree
from cipherstudio.engine.managers.persistence import ProjectNotFoundError, RemoteError
from cipherstudio.engine.models.enums import EventType
from cipherstudio.engine.store.base import PersistenceUnavailableError
from cipherstudio.engine.templates import DEFAULT_LANGUAGE, FALLBACK_PATH, LANGUAGE_TEMPLATES, get_template

if TYPE_CHECKING:
    from cipherstudio.engine.clock import Clock, TimerHandle
    from cipherstudio.engine.events import EventBus
    from cipherstudio.engine.managers.persistence import PersistenceGateway
    from cipherstudio.engine.managers.session import SessionBootstrapper
    from cipherstudio.engine.models.files import FileNode
    from cipherstudio.engine.models.project import PersistedProject, SessionIdentity
    from cipherstudio.engine.templates import LanguageTemplate

MISSING_FILE_PLACEHOLDER = "// File not found or is a folder."


def new_project_id() -> str:
    return uuid.uuid4().hex


class WorkspaceController:
    """Sequences workspace operations and owns their timers."""

    def __init__(
        self,
        *,
        session: SessionBootstrapper,
        persistence: PersistenceGateway,
        bus: EventBus,
        clock: Clock,
        language_id: str = DEFAULT_LANGUAGE,
        autosave_enabled: bool = True,
        autosave_interval: float = 10.0,
        status_clear_delay: float = 3.0,
    ) -> None:
        self._session = session
        self._persistence = persistence
        self._bus = bus
        self._clock = clock
        self._autosave_interval = autosave_interval
        self._status_clear_delay = status_clear_delay

        template = get_template(language_id)
        self._workspace = Workspace(
            language_id=template.language_id,
            files=FileTree.from_template(template),
            autosave_enabled=autosave_enabled,
        )

        self._status: str | None = None
        self._busy = False
        self._status_timer: TimerHandle | None = None
        self._autosave_timer: TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False

    # -- Query -----------------------------------------------------------------

    @property
    def workspace(self) -> Workspace:
        """The live workspace.  Read it; mutate only through this controller."""
        return self._workspace

    @property
    def template(self) -> LanguageTemplate:
        return get_template(self._workspace.language_id)

    @property
    def status(self) -> str | None:
        return self._status

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def autosave_armed(self) -> bool:
        return self._autosave_timer is not None and not self._autosave_timer.cancelled()

    def active_file_content(self) -> str:
        node = self._workspace.files.get(self._workspace.selected_path)
        if node is None or node.is_folder or node.content is None:
            return MISSING_FILE_PLACEHOLDER
        return node.content

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> SessionIdentity:
        """Bootstrap the session and open a fresh project."""
        identity = await self._session.bootstrap()
        self._workspace.owner_id = identity.owner_id
        self._publish(EventType.SESSION_READY, owner_id=identity.owner_id, method=identity.method)
        if self._workspace.project_id is None:
            self._reset_to_template(self._workspace.language_id)
        else:
            self._rearm_autosave()
        return identity

    async def aclose(self) -> None:
        """Tear down timers and wait for in-flight background writes."""
        self._closed = True
        self._cancel_autosave()
        if self._status_timer is not None:
            self._status_timer.cancel()
            self._status_timer = None
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # -- Project operations ----------------------------------------------------

    def switch_language(self, language_id: str) -> None:
        """Start an unsaved project from ``language_id``'s default files.

        Raises:
            UnknownLanguageError: If the language is not in the catalog.
        """
        template = get_template(language_id)
        self._reset_to_template(template.language_id)
        logger.info("Switched language to {} (project={})", language_id, self._workspace.project_id)
        self._set_status(f"Switched to {language_id}. Start a new project or save your work.")

    def new_project(self) -> None:
        """Fresh default tree and project id; the language is unchanged."""
        language_id = self._workspace.language_id
        self._reset_to_template(language_id)
        self._set_status(f'New {language_id} project created. Use "Save" to persist.')

    async def load_project(self, project_id: str) -> PersistedProject | None:
        """Replace the workspace with a stored project.

        On any failure the current workspace is left untouched and a status
        message describes the problem.
        """
        self._set_status(f"Loading project {project_id}...")
        self._set_busy(True)
        try:
            project = await self._persistence.load(self._workspace.owner_id, project_id)
        except ProjectNotFoundError:
            logger.info("Project {} not found", project_id)
            self._set_status(f"Project ID {project_id} not found.")
            return None
        except PersistenceUnavailableError:
            logger.debug("Load skipped: document store not configured")
            self._clear_status()
            return None
        except RemoteError as exc:
            logger.warning("Failed to load project {}: {}", project_id, exc)
            self._set_status("Error loading project. Check console for details.")
            return None
        finally:
            self._set_busy(False)

        language_id = project.language_id
        if language_id not in LANGUAGE_TEMPLATES:
            logger.warning("Project {} has unknown language {!r}, using {}", project_id, language_id, DEFAULT_LANGUAGE)
            language_id = DEFAULT_LANGUAGE
        template = get_template(language_id)
        if project.files:
            files = FileTree.from_snapshot(
                project.files,
                fallback_path=template.entry_path,
                selection_fallback=FALLBACK_PATH,
                editable=template.editable,
            )
        else:
            files = FileTree.from_template(template)

        self._replace(language_id, files, project_id=project_id, project_name=project.name)
        logger.info("Project loaded: {} ({})", project_id, language_id)
        self._set_status(f"Project '{project.display_name}' loaded. Language: {language_id}")
        return project

    async def save_project(self, name: str | None = None) -> PersistedProject | None:
        """Write the full snapshot.  No-op until the session is ready and a project id exists."""
        ws = self._workspace
        if not self._session.ready or not ws.project_id:
            return None

        self._set_busy(True)
        try:
            project = await self._persistence.save(ws.owner_id, ws.project_id, ws.snapshot(), name=name)
        except PersistenceUnavailableError:
            logger.debug("Save skipped: document store not configured")
            return None
        except RemoteError as exc:
            logger.warning("Failed to save project {}: {}", ws.project_id, exc)
            self._set_status("Error saving project. Check console for details.")
            return None
        finally:
            self._set_busy(False)

        if project is None:
            return None
        if project.id == ws.project_id:
            ws.project_name = project.name
        self._set_status(f"Project '{project.display_name}' saved successfully!")
        return project

    async def delete_project(self, project_id: str) -> bool:
        """Delete a stored project; deleting the active one opens a new project."""
        self._set_busy(True)
        try:
            deleted = await self._persistence.delete(self._workspace.owner_id, project_id)
        except ProjectNotFoundError:
            self._set_status(f"Project ID {project_id} not found.")
            return False
        except PersistenceUnavailableError:
            logger.debug("Delete skipped: document store not configured")
            return False
        except RemoteError as exc:
            logger.warning("Failed to delete project {}: {}", project_id, exc)
            self._set_status("Error deleting project.")
            return False
        finally:
            self._set_busy(False)

        if not deleted:
            return False
        if project_id == self._workspace.project_id:
            self.new_project()
        self._set_status(f"Project {project_id} deleted.")
        return True

    async def list_projects(self) -> list[PersistedProject]:
        try:
            return await self._persistence.list_projects(self._workspace.owner_id)
        except PersistenceUnavailableError:
            return []
        except RemoteError as exc:
            logger.warning("Failed to list projects: {}", exc)
            self._set_status("Error loading projects.")
            return []

    # -- Autosave --------------------------------------------------------------

    def set_autosave(self, enabled: bool) -> None:
        self._workspace.autosave_enabled = enabled
        logger.debug("Autosave {}", "enabled" if enabled else "disabled")
        self._rearm_autosave()

    def toggle_autosave(self) -> bool:
        self.set_autosave(not self._workspace.autosave_enabled)
        return self._workspace.autosave_enabled

    def _rearm_autosave(self) -> None:
        self._cancel_autosave()
        ws = self._workspace
        if self._closed or not self._session.ready or not ws.project_id or not ws.autosave_enabled:
            return
        self._autosave_timer = self._clock.call_later(self._autosave_interval, self._autosave_tick, ws.project_id)

    def _cancel_autosave(self) -> None:
        if self._autosave_timer is not None:
            self._autosave_timer.cancel()
            self._autosave_timer = None

    def _autosave_tick(self, project_id: str) -> None:
        ws = self._workspace
        if self._closed or project_id != ws.project_id or not ws.autosave_enabled:
            return
        # Snapshot at fire time, not at arm time.
        snapshot = ws.snapshot()
        self._spawn(self._persistence.autosave(ws.owner_id, project_id, snapshot))
        self._autosave_timer = self._clock.call_later(self._autosave_interval, self._autosave_tick, project_id)

    # -- File operations -------------------------------------------------------

    def create_path(self, path: str, is_folder: bool | None = None) -> FileNode:
        files = self._workspace.files
        node = files.create(path, is_folder)
        self._publish(EventType.FILES_CHANGED, created=[node.path])
        if not node.is_folder:
            self._publish_selection()
        return node

    def rename_path(self, old_path: str, new_path: str) -> None:
        files = self._workspace.files
        selected = files.selected_path
        files.rename(old_path, new_path)
        self._publish(EventType.FILES_CHANGED, renamed={"from": old_path, "to": new_path})
        if files.selected_path != selected:
            self._publish(EventType.SELECTION_CHANGED, path=files.selected_path)

    def delete_path(self, path: str) -> list[str]:
        files = self._workspace.files
        selected = files.selected_path
        removed = files.delete(path)
        if removed:
            self._publish(EventType.FILES_CHANGED, deleted=removed)
        if files.selected_path != selected:
            self._publish_selection()
        return removed

    def select_path(self, path: str) -> None:
        self._workspace.files.select(path)
        self._publish_selection()

    def update_file_content(self, path: str, content: str) -> FileNode:
        files = self._workspace.files
        node = files.update_content(path, content)
        self._publish(EventType.FILES_CHANGED, updated=[node.path])
        if node.path == files.selected_path:
            self._publish_source()
        return node

    # -- Status ----------------------------------------------------------------

    def _set_status(self, message: str) -> None:
        if self._status_timer is not None:
            self._status_timer.cancel()
        self._status = message
        self._publish(EventType.STATUS_CHANGED, message=message, busy=self._busy)
        self._status_timer = self._clock.call_later(self._status_clear_delay, self._clear_status)

    def _clear_status(self) -> None:
        if self._status_timer is not None:
            self._status_timer.cancel()
            self._status_timer = None
        if self._status is None:
            return
        self._status = None
        self._publish(EventType.STATUS_CHANGED, message=None, busy=self._busy)

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy

    # -- Internal --------------------------------------------------------------

    def _reset_to_template(self, language_id: str) -> None:
        template = get_template(language_id)
        self._replace(language_id, FileTree.from_template(template), project_id=new_project_id(), project_name=None)

    def _replace(self, language_id: str, files: FileTree, *, project_id: str, project_name: str | None) -> None:
        ws = self._workspace
        ws.language_id = language_id
        ws.files = files
        ws.project_id = project_id
        ws.project_name = project_name
        self._rearm_autosave()
        self._publish(
            EventType.WORKSPACE_REPLACED,
            language_id=language_id,
            project_id=project_id,
            selected_path=files.selected_path,
        )
        self._publish_source()

    def _publish_selection(self) -> None:
        self._publish(EventType.SELECTION_CHANGED, path=self._workspace.selected_path)
        self._publish_source()

    def _publish_source(self) -> None:
        ws = self._workspace
        node = ws.files.get(ws.selected_path)
        content = node.content if node is not None and not node.is_folder and node.content is not None else ""
        self._publish(EventType.SOURCE_CHANGED, language_id=ws.language_id, path=ws.selected_path, content=content)

    def _publish(self, event_type: EventType, **payload: Any) -> None:
        self._bus.publish(event_type, **payload)

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
