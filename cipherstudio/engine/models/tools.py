"""Tool request and channel state models."""

from __future__ import annotations

from pydantic import BaseModel

from cipherstudio.engine.models.enums import ChannelStatus, ToolKind


class ToolRequest(BaseModel):
    """One dispatch on a tool channel.

    ``generation`` is the channel's counter at dispatch time; a response is
    applied only while it still equals the channel's current generation.
    """

    kind: ToolKind
    source_path: str
    source_language: str
    code: str = ""
    target_language: str | None = None
    prompt: str | None = None
    generation: int = 0


class ChannelState(BaseModel):
    """Observable state of a single tool channel."""

    kind: ToolKind
    status: ChannelStatus = ChannelStatus.IDLE
    text: str | None = None
    error: str | None = None
    title: str | None = None
    generation: int = 0
