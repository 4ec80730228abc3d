"""
Snapshot cache: the content tree persisted by the previous run
"""
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from .snapshot_codec import SnapshotCodec
from ..core.content_tree import DirectoryNode
from ..utils.logging import log, vlog


class SnapshotCache:
    """
    One (optional) snapshot file for a location.

    ``lookup()`` trusts a cached hash only for a file last modified strictly
    before the snapshot was captured; a file touched at the capture instant
    or later is rehashed. A missing file just means "no cache".
    """

    def __init__(self, path: Optional[Path], codec: Optional[SnapshotCodec] = None):
        self.path = Path(path) if path is not None else None
        self.codec = codec or SnapshotCodec()
        self.captured_at: Optional[datetime] = None
        self.hashes: dict = {}

    def exists(self) -> bool:
        return self.path is not None and self.path.is_file()

    def load(self) -> "SnapshotCache":
        """Read the capture time and the flat path → hash map, if the file exists."""
        self.captured_at, self.hashes = None, {}
        if self.path is None:
            vlog("[cache] no cached content file specified")
        elif not self.path.is_file():
            log(f"[cache] cached content file {self.path} does not yet exist")
        else:
            log(f"[cache] reading cached file hashes from {self.path} …")
            self.captured_at, self.hashes = self.codec.read_hash_map(self.path)
        return self

    def lookup(self, relative_path: str, mtime: datetime) -> Optional[str]:
        """The cached hash for *relative_path*, or None if it must be recomputed."""
        if self.captured_at is None:
            return None
        digest = self.hashes.get(relative_path)
        if digest is not None and mtime < self.captured_at:
            return digest
        return None

    def read_tree(self) -> Optional[DirectoryNode]:
        if not self.exists():
            return None
        return self.codec.read(self.path)

    def save(self, tree: DirectoryNode):
        if self.path is not None:
            self.codec.write(tree, self.path)

    def clear(self):
        if self.exists():
            log(f"[cache] deleting cached content file {self.path} …")
            self.path.unlink()

    def copy_from(self, other: "SnapshotCache"):
        """Replace this cache file with a copy of *other*'s."""
        if self.path is None or not other.exists():
            return
        log(f"[cache] copying {other.path} → {self.path}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(other.path, self.path)
