"""Data models for the engine."""

from cipherstudio.engine.models.enums import (
    ChannelStatus,
    EventType,
    IdentityMethod,
    SessionPhase,
    ToolKind,
)
from cipherstudio.engine.models.events import StateEvent
from cipherstudio.engine.models.files import FileNode
from cipherstudio.engine.models.project import PersistedProject, ProjectSnapshot, SessionIdentity
from cipherstudio.engine.models.tools import ChannelState, ToolRequest

__all__ = [
    # Tools
    "ChannelState",
    # Enums
    "ChannelStatus",
    "EventType",
    # Files
    "FileNode",
    "IdentityMethod",
    # Project
    "PersistedProject",
    "ProjectSnapshot",
    "SessionIdentity",
    "SessionPhase",
    # Events
    "StateEvent",
    "ToolKind",
    "ToolRequest",
]
