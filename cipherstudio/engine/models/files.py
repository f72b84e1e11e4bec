"""File node model.

A node is keyed by its absolute, ``/``-separated path.  Folder paths end with
``/``.  ``content is None`` on a non-folder node means the content was never
loaded (or was denied), which is different from an empty file.
"""

from __future__ import annotations

from pydantic import BaseModel

SEPARATOR = "/"


class FileNode(BaseModel):
    """Single entry in a FileTree."""

    path: str
    content: str | None = None
    is_folder: bool = False
    is_entry_point: bool = False
    hidden: bool = False

    @property
    def is_renderable(self) -> bool:
        """A visible file whose content is available."""
        return not self.is_folder and not self.hidden and self.content is not None
