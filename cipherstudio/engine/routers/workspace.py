"""Workspace endpoints (RPC-style).

All write operations use POST; reads use GET.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from cipherstudio.engine.deps import StudioDep
from cipherstudio.engine.models.api import AutosaveRequest, SwitchLanguageRequest, WorkspaceResponse
from cipherstudio.engine.templates import UnknownLanguageError

router = APIRouter(prefix="/workspace", tags=["workspace"])


@router.get("/get", response_model=WorkspaceResponse)
async def get_workspace(studio: StudioDep) -> WorkspaceResponse:
    """Current workspace, status line and session phase."""
    return WorkspaceResponse.from_controller(studio.controller, studio.session.phase)


@router.post("/switch-language", response_model=WorkspaceResponse)
async def switch_language(body: SwitchLanguageRequest, studio: StudioDep) -> WorkspaceResponse:
    """Start a fresh, unsaved project in another language."""
    try:
        studio.controller.switch_language(body.language_id)
    except UnknownLanguageError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Language '{body.language_id}' not found.") from None
    return WorkspaceResponse.from_controller(studio.controller, studio.session.phase)


@router.post("/autosave", response_model=WorkspaceResponse)
async def set_autosave(body: AutosaveRequest, studio: StudioDep) -> WorkspaceResponse:
    """Enable or disable autosave; toggles when ``enabled`` is omitted."""
    if body.enabled is None:
        studio.controller.toggle_autosave()
    else:
        studio.controller.set_autosave(body.enabled)
    return WorkspaceResponse.from_controller(studio.controller, studio.session.phase)
