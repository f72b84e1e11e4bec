"""FastAPI dependency injection for the engine.

Usage in route handlers::

    @router.get("/get")
    async def get_workspace(studio: StudioDep) -> WorkspaceResponse:
        ...

The dependency raises HTTP 503 if the studio was not initialised (the app
lifespan did not run or failed during startup).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from cipherstudio.engine.studio import Studio


def get_studio(request: Request) -> Studio:
    """Return the process-wide Studio created in the app lifespan."""
    studio: Studio | None = getattr(request.app.state, "studio", None)
    if studio is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Engine not initialised.",
        )
    return studio


# -- Annotated type aliases for concise route signatures ---------------------

StudioDep = Annotated[Studio, Depends(get_studio)]
"""Annotated dependency: the wired engine (workspace, tools, event bus)."""
