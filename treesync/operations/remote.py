"""
A directory tree on a remote host reached over SSH
"""
import shlex
from typing import Optional, Sequence

from .hash_command import HashCommand, SHA256SUM
from ..core.content_tree import DirectoryNode, build_content_tree
from ..errors import ListingError
from ..state.snapshot_cache import SnapshotCache
from ..utils.file_utils import capture_time, normalised_dir
from ..utils.ignore_patterns import is_ignored
from ..utils.logging import log, vlog


class RemoteLocation:
    """
    Lists directories with ``find`` and hashes files with a HashCommand,
    both run through *transport* (an SSHManager or ExternalSshScp).
    Copies upload into the remote tree; deletions run ``rm``.
    """

    def __init__(self, transport, base_dir: str, hash_command: HashCommand = SHA256SUM,
                 cache: Optional[SnapshotCache] = None, path_prefix: str = "",
                 ignore_patterns: Sequence = ()):
        self.transport = transport
        self.base_dir = normalised_dir(str(base_dir))
        self.hash_command = hash_command
        self.cache = cache
        # the source's .stignore patterns; matching remote paths are never listed
        self.ignore_patterns = list(ignore_patterns)
        # prefix for `find` when it is not on the remote PATH
        self.path_prefix = path_prefix

    def describe(self) -> str:
        return f"{self.transport.user_at_host}:{self.base_dir} (hash command = {self.hash_command})"

    def full_path(self, relative_path: str) -> str:
        return self.base_dir + relative_path

    # ── listing ────────────────────────────────────────────────────────────

    def find_directories_command(self) -> str:
        return f"{self.path_prefix}find {shlex.quote(self.base_dir)} -type d -print"

    def find_file_hashes_command(self) -> str:
        hasher = " ".join(shlex.quote(c) for c in self.hash_command.command)
        return (f"{self.path_prefix}find {shlex.quote(self.base_dir)} -type f -print0"
                f" | xargs -0 -r {hasher}")

    def list_directories(self) -> list:
        result = self.transport.exec(self.find_directories_command()).check()
        directories = []
        for line in result.lines():
            vlog(f"  {line}")
            # find prints the base directory itself, possibly without its "/"
            if normalised_dir(line) == self.base_dir:
                continue
            if not line.startswith(self.base_dir):
                raise ListingError(f"Directory {line} is not a sub-directory of base directory {self.base_dir}")
            rel = line[len(self.base_dir):].rstrip("/")
            if is_ignored(rel, self.ignore_patterns):
                continue
            directories.append(rel)
        return directories

    def list_file_hashes(self) -> list:
        result = self.transport.exec(self.find_file_hashes_command()).check()
        hashes = []
        for line in result.lines():
            fh = self.hash_command.parse_file_hash_line(self.base_dir, line)
            if fh is None:
                vlog(f"  [skip] {line!r}")
                continue
            if is_ignored(fh.relative_path, self.ignore_patterns):
                continue
            hashes.append(fh)
        return hashes

    def get_content_tree(self, use_cache: bool = True, save: bool = True) -> DirectoryNode:
        """
        Read the tree from the cache file when allowed and present; otherwise
        list and hash the remote tree (and save the result to the cache file).
        """
        if use_cache and self.cache is not None and self.cache.exists():
            log(f"[scan] using cached content tree for {self.describe()}")
            tree = self.cache.read_tree()
            tree.sort()
            return tree
        captured_at = capture_time()
        log(f"[scan] listing {self.describe()} …")
        tree = build_content_tree(self.list_directories(), self.list_file_hashes(), captured_at)
        log(f"[scan] {len(tree.file_hashes())} remote file(s)")
        if save and self.cache is not None:
            self.cache.save(tree)
        return tree

    # ── operations ─────────────────────────────────────────────────────────

    def copy(self, source_path: str, destination_dir: str, recursive: bool = False):
        self.transport.upload(source_path, destination_dir, recursive)

    def delete(self, path: str, recursive: bool = False):
        # -f: a retried command may find the path already gone
        flag = "rm -rf" if recursive else "rm -f"
        self.transport.exec(f"{flag} {shlex.quote(path)}").check()

    def close(self):
        self.transport.close()
