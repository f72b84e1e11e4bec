"""API request / response schemas for the HTTP surface.

Request bodies are thin wrappers over controller arguments.  Responses
serialize the live workspace and channel state; the domain models in
``files.py`` / ``project.py`` / ``tools.py`` are reused where they fit.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from cipherstudio.engine.models.enums import SessionPhase
from cipherstudio.engine.models.files import FileNode

if TYPE_CHECKING:
    from cipherstudio.engine.managers.workspace import WorkspaceController
    from cipherstudio.engine.models.project import PersistedProject
    from cipherstudio.engine.templates import LanguageTemplate

# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


class SwitchLanguageRequest(BaseModel):
    language_id: str


class AutosaveRequest(BaseModel):
    """Set autosave explicitly, or toggle it when ``enabled`` is omitted."""

    enabled: bool | None = None


class WorkspaceResponse(BaseModel):
    language_id: str
    project_id: str | None
    project_name: str | None
    owner_id: str | None
    phase: SessionPhase
    selected_path: str
    active_content: str
    autosave_enabled: bool
    editable: bool
    status: str | None
    busy: bool
    visible_paths: list[str]
    files: dict[str, FileNode]

    @classmethod
    def from_controller(cls, controller: WorkspaceController, phase: SessionPhase) -> WorkspaceResponse:
        ws = controller.workspace
        return cls(
            language_id=ws.language_id,
            project_id=ws.project_id,
            project_name=ws.project_name,
            owner_id=ws.owner_id,
            phase=phase,
            selected_path=ws.selected_path,
            active_content=controller.active_file_content(),
            autosave_enabled=ws.autosave_enabled,
            editable=ws.files.editable,
            status=controller.status,
            busy=controller.busy,
            visible_paths=ws.files.visible_paths(),
            files=ws.files.snapshot(),
        )


# ---------------------------------------------------------------------------
# Languages
# ---------------------------------------------------------------------------


class LanguageResponse(BaseModel):
    language_id: str
    label: str
    icon: str
    description: str
    editable: bool
    live: bool
    entry_path: str
    conversion_targets: list[str] = Field(default_factory=list)

    @classmethod
    def from_template(cls, template: LanguageTemplate, targets: list[str]) -> LanguageResponse:
        return cls(
            language_id=template.language_id,
            label=template.label,
            icon=template.icon,
            description=template.description,
            editable=template.editable,
            live=template.live,
            entry_path=template.entry_path,
            conversion_targets=targets,
        )


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class PathCreate(BaseModel):
    path: str
    is_folder: bool | None = Field(default=None, description="Inferred from a trailing '/' when omitted.")


class PathRename(BaseModel):
    old_path: str
    new_path: str


class PathRef(BaseModel):
    path: str


class ContentUpdate(BaseModel):
    path: str
    content: str


class PathDeleteResponse(BaseModel):
    removed: list[str]


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectSave(BaseModel):
    name: str | None = None


class ProjectSummary(BaseModel):
    id: str
    name: str
    language_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_project(cls, project: PersistedProject) -> ProjectSummary:
        return cls(
            id=project.id,
            name=project.display_name,
            language_id=project.language_id,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectOperationResponse(BaseModel):
    """Outcome of a project operation.

    ``ok`` is ``False`` when the operation was skipped or failed; ``status``
    carries the user-facing message in both cases.
    """

    ok: bool
    status: str | None
    project: ProjectSummary | None = None
    workspace: WorkspaceResponse


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolInvoke(BaseModel):
    target: str | None = Field(default=None, description="Conversion target language (convert only).")
    description: str | None = Field(default=None, description="What to generate (generate only).")
