"""Tool channel endpoints.

``POST /tools/{kind}`` runs a click-driven channel against the active file
and returns the channel state once the call settled.  A superseded call
returns the state of the newer request.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from cipherstudio.engine.deps import StudioDep
from cipherstudio.engine.models.api import ToolInvoke
from cipherstudio.engine.models.enums import ToolKind
from cipherstudio.engine.models.tools import ChannelState

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("/channels", response_model=dict[ToolKind, ChannelState])
async def get_channels(studio: StudioDep) -> dict[ToolKind, ChannelState]:
    """Current state of every channel, simulation included."""
    return studio.orchestrator.channels()


@router.post("/{kind}", response_model=ChannelState)
async def invoke_tool(kind: ToolKind, body: ToolInvoke, studio: StudioDep) -> ChannelState:
    try:
        return await studio.run_tool(kind, target=body.target, description=body.description)
    except ValueError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None
