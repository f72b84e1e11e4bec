"""Project endpoints (RPC-style).

Persistence problems never become HTTP errors here: the controller reports
them on the status line and leaves the workspace untouched, so every
operation answers 200 with ``ok`` and the status message.
"""

from __future__ import annotations

from fastapi import APIRouter

from cipherstudio.engine.deps import StudioDep
from cipherstudio.engine.models.api import (
    ProjectOperationResponse,
    ProjectSave,
    ProjectSummary,
    WorkspaceResponse,
)
from cipherstudio.engine.models.project import PersistedProject
from cipherstudio.engine.studio import Studio

router = APIRouter(prefix="/projects", tags=["projects"])


def _response(studio: Studio, ok: bool, project: PersistedProject | None = None) -> ProjectOperationResponse:
    return ProjectOperationResponse(
        ok=ok,
        status=studio.controller.status,
        project=ProjectSummary.from_project(project) if project is not None else None,
        workspace=WorkspaceResponse.from_controller(studio.controller, studio.session.phase),
    )


@router.post("/new", response_model=ProjectOperationResponse)
async def new_project(studio: StudioDep) -> ProjectOperationResponse:
    """Fresh default files and project id in the current language."""
    studio.controller.new_project()
    return _response(studio, ok=True)


@router.post("/save", response_model=ProjectOperationResponse)
async def save_project(body: ProjectSave, studio: StudioDep) -> ProjectOperationResponse:
    project = await studio.controller.save_project(body.name)
    return _response(studio, ok=project is not None, project=project)


@router.get("/list", response_model=list[ProjectSummary])
async def list_projects(studio: StudioDep) -> list[ProjectSummary]:
    """Projects of the current owner, most recently updated first."""
    return [ProjectSummary.from_project(project) for project in await studio.controller.list_projects()]


@router.post("/{project_id}/load", response_model=ProjectOperationResponse)
async def load_project(project_id: str, studio: StudioDep) -> ProjectOperationResponse:
    project = await studio.controller.load_project(project_id)
    return _response(studio, ok=project is not None, project=project)


@router.post("/{project_id}/delete", response_model=ProjectOperationResponse)
async def delete_project(project_id: str, studio: StudioDep) -> ProjectOperationResponse:
    """Delete a stored project; deleting the active one opens a new project."""
    deleted = await studio.controller.delete_project(project_id)
    return _response(studio, ok=deleted)
