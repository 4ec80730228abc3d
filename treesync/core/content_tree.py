"""
Content trees: a directory hierarchy whose file leaves carry content hashes.

A content tree is built from two flat listings (sub-directories, and files
with their hashes) by addressing each entry with its relative path. Nodes are
created on demand, so listings may arrive in any order; call ``sort()`` once
the tree is complete to get a deterministic iteration order.

The ``copy_destination`` / ``to_be_deleted`` markers are written only by the
planner (see ``planner.py``) and read by the executor.
"""
from datetime import datetime
from typing import Iterable, Iterator, Optional, Sequence, Union

from ..errors import InvalidHashError, InvalidPathError

PathLike = Union[str, Sequence[str]]


def path_elements_of(path: PathLike) -> list:
    """Split a "/"-delimited relative path (or pass through a pre-split one), dropping empty segments."""
    if isinstance(path, str):
        return [p for p in path.split("/") if p]
    return [p for p in path if p]


class FileEntry:
    """A file within a content tree, marked for copying (source side) or deletion (destination side)."""

    def __init__(self, name: str, hash: str, parent_path: Sequence[str] = ()):
        if not hash:
            raise InvalidHashError(f"File {name!r} has no content hash")
        self.name = name
        self.hash = hash
        self.parent_path = tuple(parent_path)
        self.copy_destination: Optional["DirectoryNode"] = None
        self.to_be_deleted = False

    @property
    def relative_path(self) -> str:
        return "/".join(self.parent_path + (self.name,))

    def mark_to_copy(self, destination_dir: "DirectoryNode"):
        self.copy_destination = destination_dir

    def mark_to_delete(self):
        self.to_be_deleted = True

    def __str__(self):
        return f"{self.name} ({self.hash})"

    def __repr__(self):
        return f"FileEntry({self.relative_path!r}, {self.hash!r})"


class DirectoryNode:
    """
    One directory level of a content tree.

    The root has ``name = None`` and empty ``path_elements``; only the root
    records ``captured_at``, the UTC time its listing was taken.
    """

    def __init__(self, name: Optional[str] = None, parent_path: Sequence[str] = ()):
        self.name = name
        self.path_elements = () if name is None else tuple(parent_path) + (name,)
        self.files: list = []
        self.dirs: list = []
        self.file_by_name: dict = {}
        self.dir_by_name: dict = {}
        self.copy_destination: Optional["DirectoryNode"] = None
        self.to_be_deleted = False
        self.captured_at: Optional[datetime] = None

    @property
    def is_root(self) -> bool:
        return self.name is None

    @property
    def relative_path(self) -> str:
        return "/".join(self.path_elements)

    def mark_to_copy(self, destination_dir: "DirectoryNode"):
        self.copy_destination = destination_dir

    def mark_to_delete(self):
        self.to_be_deleted = True

    # ── construction ───────────────────────────────────────────────────────

    def _subdir(self, name: str) -> "DirectoryNode":
        """Get the named child directory, creating it if it doesn't exist yet."""
        node = self.dir_by_name.get(name)
        if node is None:
            node = DirectoryNode(name, self.path_elements)
            self.dirs.append(node)
            self.dir_by_name[name] = node
        return node

    def add_dir(self, path: PathLike):
        elements = path_elements_of(path)
        if elements:
            self._subdir(elements[0]).add_dir(elements[1:])

    def add_file(self, path: PathLike, hash: str) -> FileEntry:
        elements = path_elements_of(path)
        if not elements:
            raise InvalidPathError(f"Invalid file path: {path!r}")
        if len(elements) > 1:
            return self._subdir(elements[0]).add_file(elements[1:], hash)
        entry = FileEntry(elements[0], hash, self.path_elements)
        self.files.append(entry)
        self.file_by_name[entry.name] = entry
        return entry

    def sort(self):
        """Recursively order sub-directories and files by name."""
        self.dirs.sort(key=lambda d: d.name)
        self.files.sort(key=lambda f: f.name)
        for d in self.dirs:
            d.sort()

    # ── lookup ─────────────────────────────────────────────────────────────

    def get_dir(self, name: str) -> Optional["DirectoryNode"]:
        return self.dir_by_name.get(name)

    def get_file(self, name: str) -> Optional[FileEntry]:
        return self.file_by_name.get(name)

    def iter_dirs(self) -> Iterator["DirectoryNode"]:
        """All sub-directories, parents before children."""
        for d in self.dirs:
            yield d
            yield from d.iter_dirs()

    def iter_files(self) -> Iterator[FileEntry]:
        """All files: this directory's own first, then each sub-directory's."""
        yield from self.files
        for d in self.dirs:
            yield from d.iter_files()

    def file_hashes(self) -> dict:
        """Flat {relative_path: hash} view of every file in the tree."""
        return {f.relative_path: f.hash for f in self.iter_files()}

    # ── display ────────────────────────────────────────────────────────────

    def show_indented(self, indent: str = "  ", _current: str = "") -> list:
        """Render the tree (with any copy/delete markers) as display lines."""
        lines = []
        if self.captured_at is not None:
            lines.append(f"{_current}[TIME: {self.captured_at.isoformat()}]")
        if self.name is not None:
            lines.append(f"{_current}{self.name}/")
        if self.copy_destination is not None:
            lines.append(f"{_current} [COPY to /{self.copy_destination.relative_path}]")
        if self.to_be_deleted:
            lines.append(f"{_current} [DELETE]")
        nxt = _current + indent
        for d in self.dirs:
            lines.extend(d.show_indented(indent, nxt))
        for f in self.files:
            lines.append(f"{nxt}{f.name}  - {f.hash}")
            if f.copy_destination is not None:
                lines.append(f"{nxt} [COPY to /{f.copy_destination.relative_path}]")
            if f.to_be_deleted:
                lines.append(f"{nxt} [DELETE]")
        return lines

    def __repr__(self):
        label = "<root>" if self.name is None else self.relative_path
        return f"DirectoryNode({label!r}, dirs={len(self.dirs)}, files={len(self.files)})"


def build_content_tree(directories: Iterable[PathLike],
                       file_hashes: Iterable,
                       captured_at: Optional[datetime] = None) -> DirectoryNode:
    """
    Build and sort a content tree from a directory listing and a listing of
    (relative_path, hash) pairs.
    """
    tree = DirectoryNode()
    tree.captured_at = captured_at
    for d in directories:
        tree.add_dir(d)
    for rel, digest in file_hashes:
        tree.add_file(rel, digest)
    tree.sort()
    return tree
