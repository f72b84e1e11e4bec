"""Hierarchical path -> node store.

Paths are absolute and ``/``-separated; folder paths end with ``/``.  The
tree is flat (a dict keyed by path) and hierarchy is expressed purely by
prefixes, so a folder may exist implicitly through its descendants without
a node of its own (template trees look like this).

All mutations are synchronous and immediately visible to the caller.
Structural errors raise; nothing is retried.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from cipherstudio.engine.models.files import SEPARATOR, FileNode
from cipherstudio.engine.templates import FALLBACK_PATH, LanguageTemplate


class PathExistsError(ValueError):
    """Raised when creating or renaming onto a path that already exists."""


class InvalidPathError(ValueError):
    """Raised for malformed paths or operations that don't fit the node kind."""


class InvalidRenameError(ValueError):
    """Raised when a rename would change a node's kind."""


class FolderToFileRenameError(InvalidRenameError):
    """Raised when a folder is renamed to a path without a trailing separator."""


class PathNotFoundError(LookupError):
    """Raised when an operation targets a path that is not in the tree."""


class FileActionsDisabledError(PermissionError):
    """Raised when structural edits are attempted on a non-editable tree."""


def normalize_path(path: str) -> str:
    """Strip surrounding whitespace and make the path absolute."""
    path = path.strip()
    if not path or path == SEPARATOR:
        msg = f"Invalid path: {path!r}"
        raise InvalidPathError(msg)
    return path if path.startswith(SEPARATOR) else SEPARATOR + path


def default_content(path: str) -> str:
    """Starter content for a newly created file, chosen by extension."""
    name = path.rsplit(SEPARATOR, 1)[-1]
    ext = name.rsplit(".", 1)[-1] if "." in name else ""

    if ext == "css":
        return f"/* {path} */\n"
    if ext in ("js", "jsx", "ts", "tsx"):
        return f"// {path} \n\nexport default function Component() {{ return <div>Hello, {path}</div>; }}"
    if ext == "html":
        return f"<!-- {path} -->\n<!DOCTYPE html>\n<html>\n<body>\n<h1>Hello HTML</h1>\n</body>\n</html>"
    if ext == "py":
        return f'# {path}\n\nprint("Hello from new Python file")\n'
    if ext == "cpp":
        return (
            f"// {path}\n#include <iostream>\n\nint main() {{\n"
            '  std::cout << "New C++ File" << std::endl;\n  return 0;\n}'
        )
    return f"// {path}\n\n"


class FileTree:
    """Mutable file tree plus the current selection.

    ``fallback_path`` is where the selection lands when a delete removes the
    selected node and no renderable file remains -- normally the entry path
    of the active language template.
    """

    def __init__(
        self,
        nodes: Iterable[FileNode] = (),
        *,
        selected_path: str | None = None,
        fallback_path: str = FALLBACK_PATH,
        editable: bool = True,
    ) -> None:
        self._nodes: dict[str, FileNode] = {node.path: node for node in nodes}
        self._fallback_path = fallback_path
        self.editable = editable
        self._selected = selected_path or self.entry_path() or fallback_path

    # -- Construction ----------------------------------------------------------

    @classmethod
    def from_template(cls, template: LanguageTemplate) -> FileTree:
        """Fresh, independent tree instantiated from a template."""
        nodes = [
            FileNode(path=path, content=default.content, hidden=default.hidden, is_entry_point=default.entry)
            for path, default in template.files
        ]
        return cls(
            nodes,
            selected_path=template.entry_path,
            fallback_path=template.entry_path,
            editable=template.editable,
        )

    @classmethod
    def from_snapshot(
        cls,
        files: dict[str, FileNode],
        *,
        fallback_path: str = FALLBACK_PATH,
        selection_fallback: str | None = None,
        editable: bool = True,
    ) -> FileTree:
        """Tree rebuilt from persisted files.

        Selection: entry of the loaded files, else first visible path, else
        ``selection_fallback`` (defaults to ``fallback_path``).  Later deletes
        fall back to ``fallback_path``.
        """
        nodes = [node.model_copy(update={"path": path}, deep=True) for path, node in files.items()]
        tree = cls(nodes, fallback_path=fallback_path, editable=editable)
        visible = tree.visible_paths()
        tree._selected = tree.entry_path() or (visible[0] if visible else selection_fallback or fallback_path)
        return tree

    def copy(self) -> FileTree:
        return FileTree(
            (node.model_copy(deep=True) for node in self._nodes.values()),
            selected_path=self._selected,
            fallback_path=self._fallback_path,
            editable=self.editable,
        )

    def snapshot(self) -> dict[str, FileNode]:
        """Deep copy of every node keyed by path, for persistence."""
        return {path: node.model_copy(deep=True) for path, node in self._nodes.items()}

    # -- Query -----------------------------------------------------------------

    def __contains__(self, path: object) -> bool:
        return path in self._nodes

    def __iter__(self) -> Iterator[FileNode]:
        return iter(list(self._nodes.values()))

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, path: str) -> FileNode | None:
        return self._nodes.get(path)

    def paths(self) -> list[str]:
        return list(self._nodes)

    @property
    def selected_path(self) -> str:
        return self._selected

    @property
    def fallback_path(self) -> str:
        return self._fallback_path

    def visible_paths(self) -> list[str]:
        """All non-hidden paths, sorted.  Pure projection for tree views."""
        return sorted(path for path, node in self._nodes.items() if not node.hidden)

    def entry_path(self) -> str | None:
        """The visible node marked as entry point, else the first visible file."""
        visible = self.visible_paths()
        for path in visible:
            if self._nodes[path].is_entry_point:
                return path
        files = [path for path in visible if not self._nodes[path].is_folder]
        return files[0] if files else None

    # -- Mutation --------------------------------------------------------------

    def create(self, path: str, is_folder: bool | None = None) -> FileNode:
        """Create a file or folder.  Raises ``PathExistsError`` on collision.

        ``is_folder=None`` infers the kind from a trailing separator.  New
        files get extension-based starter content and become the selection.
        """
        self._require_editable()
        path = normalize_path(path)

        if is_folder is None:
            is_folder = path.endswith(SEPARATOR)
        elif is_folder and not path.endswith(SEPARATOR):
            path += SEPARATOR
        elif not is_folder and path.endswith(SEPARATOR):
            msg = f"File path must not end with '{SEPARATOR}': {path}"
            raise InvalidPathError(msg)

        if path in self._nodes:
            raise PathExistsError(path)

        node = FileNode(
            path=path,
            content=None if is_folder else default_content(path),
            is_folder=is_folder,
        )
        self._nodes[path] = node
        if not is_folder:
            self._selected = path
        return node

    def rename(self, old_path: str, new_path: str) -> None:
        """Rename a node; folders carry every descendant along.

        Node objects are preserved; only their keys (and ``path`` fields)
        change.  The selection follows the node it pointed at.
        """
        self._require_editable()
        old_path = normalize_path(old_path)
        new_path = normalize_path(new_path)
        if old_path == new_path:
            return

        node = self._nodes.get(old_path)
        is_folder = node.is_folder if node is not None else old_path.endswith(SEPARATOR)
        descendants = self._descendants(old_path) if is_folder else []
        if node is None and not descendants:
            raise PathNotFoundError(old_path)

        if is_folder and not new_path.endswith(SEPARATOR):
            msg = f"Cannot rename folder {old_path} to file path {new_path}"
            raise FolderToFileRenameError(msg)
        if not is_folder and new_path.endswith(SEPARATOR):
            msg = f"Cannot rename file {old_path} to folder path {new_path}"
            raise InvalidRenameError(msg)
        if is_folder and new_path.startswith(old_path):
            msg = f"Cannot move folder {old_path} into itself"
            raise InvalidRenameError(msg)
        if new_path in self._nodes or (is_folder and self._descendants(new_path)):
            raise PathExistsError(new_path)

        mapping = {path: new_path + path[len(old_path) :] for path in descendants}
        if node is not None:
            mapping[old_path] = new_path

        renamed: dict[str, FileNode] = {}
        for path, current in self._nodes.items():
            target = mapping.get(path, path)
            current.path = target
            renamed[target] = current
        self._nodes = renamed

        if self._selected in mapping:
            self._selected = mapping[self._selected]

    def delete(self, path: str) -> list[str]:
        """Delete a node (folders cascade).  Returns the removed paths.

        Deleting a missing path is a no-op.  If the selection was removed it
        falls back to the first renderable path, or ``fallback_path``.
        """
        self._require_editable()
        path = normalize_path(path)

        node = self._nodes.get(path)
        is_folder = node.is_folder if node is not None else path.endswith(SEPARATOR)
        removed = [path] if node is not None else []
        if is_folder:
            removed.extend(self._descendants(path))
        if not removed:
            return []

        for gone in removed:
            del self._nodes[gone]

        if self._selected in removed:
            self._selected = self._fallback_selection()
        return removed

    def update_content(self, path: str, content: str) -> FileNode:
        path = normalize_path(path)
        node = self._nodes.get(path)
        if node is None:
            raise PathNotFoundError(path)
        if node.is_folder:
            msg = f"Cannot write content to folder {path}"
            raise InvalidPathError(msg)
        node.content = content
        return node

    def select(self, path: str) -> None:
        path = normalize_path(path)
        node = self._nodes.get(path)
        if node is None:
            raise PathNotFoundError(path)
        if node.is_folder:
            msg = f"Cannot select folder {path}"
            raise InvalidPathError(msg)
        self._selected = path

    # -- Internals -------------------------------------------------------------

    def _require_editable(self) -> None:
        if not self.editable:
            msg = "File actions are only supported in editable environments."
            raise FileActionsDisabledError(msg)

    def _descendants(self, folder_path: str) -> list[str]:
        return [path for path in self._nodes if path != folder_path and path.startswith(folder_path)]

    def _fallback_selection(self) -> str:
        for path in sorted(self._nodes):
            if self._nodes[path].is_renderable:
                return path
        return self._fallback_path
