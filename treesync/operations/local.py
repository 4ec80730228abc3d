"""
A directory tree on the local filesystem
"""
import os
import shutil
from pathlib import Path
from typing import Optional, Sequence

from .hash_command import FileHash
from ..core.content_tree import DirectoryNode, build_content_tree
from ..state.snapshot_cache import SnapshotCache
from ..utils.file_utils import capture_time, hash_file, mtime_utc
from ..utils.ignore_patterns import is_ignored
from ..utils.logging import log, vlog


class LocalLocation:
    """
    Lists and hashes a local directory tree with Python's own filesystem and
    hashlib functions. Can also act as a sync destination (shutil copies).
    """

    def __init__(self, base_dir: Path, cache: Optional[SnapshotCache] = None,
                 ignore_patterns: Sequence = ()):
        self.base_dir = Path(base_dir)
        self.cache = cache
        self.ignore_patterns = list(ignore_patterns)
        self.files_hashed = 0
        self.hashes_reused = 0

    def describe(self) -> str:
        return f"{self.base_dir}/"

    def full_path(self, relative_path: str) -> str:
        if not relative_path:
            return str(self.base_dir)
        return str(self.base_dir / relative_path)

    # ── listing ────────────────────────────────────────────────────────────

    def _walk(self):
        """Yield (relative_dir, dirnames, filenames) with ignored entries pruned."""
        for dirpath, dirnames, filenames in os.walk(self.base_dir):
            rel_dir = Path(dirpath).relative_to(self.base_dir).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir
            dirnames[:] = sorted(
                d for d in dirnames
                if not is_ignored(f"{rel_dir}/{d}" if rel_dir else d, self.ignore_patterns)
            )
            kept = sorted(
                f for f in filenames
                if not is_ignored(f"{rel_dir}/{f}" if rel_dir else f, self.ignore_patterns)
            )
            yield rel_dir, dirnames, kept

    def list_directories(self) -> list:
        result = []
        for rel_dir, dirnames, _ in self._walk():
            for d in dirnames:
                result.append(f"{rel_dir}/{d}" if rel_dir else d)
        return result

    def list_file_hashes(self, cache: Optional[SnapshotCache] = None) -> list:
        """
        Hash every file, reusing hashes from *cache* for files not modified
        since the cached snapshot was captured.
        """
        result = []
        for rel_dir, _, filenames in self._walk():
            for name in filenames:
                rel = f"{rel_dir}/{name}" if rel_dir else name
                path = self.base_dir / rel
                if not path.is_file():
                    continue
                digest = cache.lookup(rel, mtime_utc(path)) if cache is not None else None
                if digest is None:
                    digest = hash_file(path)
                    self.files_hashed += 1
                    vlog(f"  [hash] {rel}")
                else:
                    self.hashes_reused += 1
                result.append(FileHash(rel, digest))
        return result

    def get_content_tree(self, use_cache: bool = True, save: bool = True) -> DirectoryNode:
        cache = self.cache.load() if (use_cache and self.cache is not None) else None
        captured_at = capture_time()
        log(f"[scan] scanning {self.describe()} …")
        self.files_hashed = self.hashes_reused = 0
        tree = build_content_tree(self.list_directories(),
                                  self.list_file_hashes(cache),
                                  captured_at)
        log(f"[scan] {self.files_hashed + self.hashes_reused} local file(s) "
            f"({self.files_hashed} hashed, {self.hashes_reused} from cache)")
        if save and self.cache is not None:
            self.cache.save(tree)
        return tree

    # ── operations ─────────────────────────────────────────────────────────

    def copy(self, source_path: str, destination_dir: str, recursive: bool = False):
        target = Path(destination_dir) / Path(source_path).name
        if recursive:
            shutil.copytree(source_path, target)
        else:
            shutil.copy2(source_path, target)

    def delete(self, path: str, recursive: bool = False):
        if recursive:
            shutil.rmtree(path)
        else:
            os.remove(path)

    def close(self):
        pass
