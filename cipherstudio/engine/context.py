"""Live workspace context.

The single mutable ``Workspace`` the WorkspaceController owns.  Nothing
outside the controller writes ``files``, ``project_id`` or the selection;
readers take ``snapshot()`` or the public view.
"""

from __future__ import annotations

from dataclasses import dataclass

from cipherstudio.engine.filetree import FileTree
from cipherstudio.engine.models.project import ProjectSnapshot


@dataclass
class Workspace:
    """Active language, file tree and project identity."""

    # -- Content ---------------------------------------------------------------
    language_id: str
    files: FileTree

    # -- Identity --------------------------------------------------------------
    project_id: str | None = None
    owner_id: str | None = None
    project_name: str | None = None

    # -- Preferences -----------------------------------------------------------
    autosave_enabled: bool = True

    @property
    def selected_path(self) -> str:
        return self.files.selected_path

    def snapshot(self) -> ProjectSnapshot:
        """The persisted portion, deep-copied at call time."""
        return ProjectSnapshot(language_id=self.language_id, files=self.files.snapshot())
