"""Shared enumerations used across the engine."""

from __future__ import annotations

from enum import StrEnum

# -- Session -----------------------------------------------------------------


class SessionPhase(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    READY = "ready"


class IdentityMethod(StrEnum):
    """How the owner identity was obtained."""

    TOKEN = "token"
    ANONYMOUS = "anonymous"
    LOCAL = "local"


# -- Tools -------------------------------------------------------------------


class ToolKind(StrEnum):
    EXPLAIN = "explain"
    REVIEW = "review"
    GENERATE = "generate"
    CONVERT = "convert"
    SIMULATE_EXECUTION = "simulate_execution"


class ChannelStatus(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# -- Events ------------------------------------------------------------------


class EventType(StrEnum):
    """State-change events published on the event bus."""

    # Workspace
    WORKSPACE_REPLACED = "workspace_replaced"
    FILES_CHANGED = "files_changed"
    SELECTION_CHANGED = "selection_changed"
    SOURCE_CHANGED = "source_changed"

    # Session / status
    SESSION_READY = "session_ready"
    STATUS_CHANGED = "status_changed"
    AUTOSAVE_FAILED = "autosave_failed"

    # Tools
    CHANNEL_CHANGED = "channel_changed"
