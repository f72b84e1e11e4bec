"""Persisted project and session identity models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from cipherstudio.engine.models.enums import IdentityMethod
from cipherstudio.engine.models.files import FileNode


class ProjectSnapshot(BaseModel):
    """The part of a workspace written on save / autosave."""

    language_id: str
    files: dict[str, FileNode] = Field(default_factory=dict)


class PersistedProject(BaseModel):
    """Project document as stored in the document store.

    Created on first save, updated in place by later saves and autosaves.
    Identity is ``(owner_id, id)``.
    """

    id: str
    name: str | None = None
    language_id: str | None = None
    files: dict[str, FileNode] = Field(default_factory=dict)
    owner_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.name or f"Project {self.id}"


class SessionIdentity(BaseModel):
    """Output of session bootstrap."""

    owner_id: str
    method: IdentityMethod
    ready: bool = True
