"""File tree endpoints (RPC-style).

Structural errors map to HTTP status codes:

- ``PathNotFoundError`` -> 404
- ``PathExistsError`` -> 409
- ``InvalidRenameError`` / ``InvalidPathError`` -> 422
- ``FileActionsDisabledError`` -> 403
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, HTTPException, status

from cipherstudio.engine.deps import StudioDep
from cipherstudio.engine.filetree import (
    FileActionsDisabledError,
    InvalidPathError,
    InvalidRenameError,
    PathExistsError,
    PathNotFoundError,
)
from cipherstudio.engine.models.api import (
    ContentUpdate,
    PathCreate,
    PathDeleteResponse,
    PathRef,
    PathRename,
    WorkspaceResponse,
)
from cipherstudio.engine.models.files import FileNode

router = APIRouter(prefix="/files", tags=["files"])


@contextmanager
def _file_errors() -> Iterator[None]:
    try:
        yield
    except PathNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Path '{exc}' not found.") from None
    except PathExistsError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=f"Path '{exc}' already exists.") from None
    except (InvalidRenameError, InvalidPathError) as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None
    except FileActionsDisabledError as exc:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail=str(exc)) from None


@router.post("/create", response_model=FileNode, status_code=status.HTTP_201_CREATED)
async def create_path(body: PathCreate, studio: StudioDep) -> FileNode:
    """Create a file or folder; a new file becomes the selection."""
    with _file_errors():
        node = studio.controller.create_path(body.path, body.is_folder)
    return node.model_copy()


@router.post("/rename", response_model=WorkspaceResponse)
async def rename_path(body: PathRename, studio: StudioDep) -> WorkspaceResponse:
    """Rename a file, or a folder together with everything under it."""
    with _file_errors():
        studio.controller.rename_path(body.old_path, body.new_path)
    return WorkspaceResponse.from_controller(studio.controller, studio.session.phase)


@router.post("/delete", response_model=PathDeleteResponse)
async def delete_path(body: PathRef, studio: StudioDep) -> PathDeleteResponse:
    """Delete a path (folders cascade).  Deleting a missing path removes nothing."""
    with _file_errors():
        removed = studio.controller.delete_path(body.path)
    return PathDeleteResponse(removed=removed)


@router.post("/select", response_model=WorkspaceResponse)
async def select_path(body: PathRef, studio: StudioDep) -> WorkspaceResponse:
    with _file_errors():
        studio.controller.select_path(body.path)
    return WorkspaceResponse.from_controller(studio.controller, studio.session.phase)


@router.post("/update", response_model=FileNode)
async def update_content(body: ContentUpdate, studio: StudioDep) -> FileNode:
    """Replace a file's content."""
    with _file_errors():
        node = studio.controller.update_file_content(body.path, body.content)
    return node.model_copy()
