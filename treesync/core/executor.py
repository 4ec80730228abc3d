"""
Apply the operations marked on a pair of content trees
"""
from dataclasses import dataclass

from .content_tree import DirectoryNode
from ..utils.logging import log


@dataclass
class ExecutionReport:
    """Operations issued (or, in a dry run, described) by a SyncExecutor."""

    dirs_copied: int = 0
    files_copied: int = 0
    dirs_deleted: int = 0
    files_deleted: int = 0


class SyncExecutor:
    """
    Walks marked content trees and routes each operation to the destination
    location's copy/delete capability.

    Copies are driven by the source tree, deletions by the destination tree.
    Operations run one at a time in tree order; the first failure propagates.
    With ``dry_run`` every operation is only logged.
    """

    def __init__(self, source, destination, dry_run: bool = False):
        self.source = source
        self.destination = destination
        self.dry_run = dry_run
        self.report = ExecutionReport()

    # ── copies ─────────────────────────────────────────────────────────────

    def _copy(self, rel: str, target_rel: str, recursive: bool):
        source_path = self.source.full_path(rel)
        destination_path = self.destination.full_path(target_rel)
        kind = "dir " if recursive else "file"
        if self.dry_run:
            log(f"  [COPY-DRY] {kind} {source_path} → {destination_path}")
            return
        self.destination.copy(source_path, destination_path, recursive)
        log(f"  [COPY ✓] {kind} {rel or '.'}")

    def execute_copies(self, source_node: DirectoryNode, destination_node: DirectoryNode):
        for d in source_node.dirs:
            if d.copy_destination is not None:
                self._copy(d.relative_path, d.copy_destination.relative_path, recursive=True)
                self.report.dirs_copied += 1
            else:
                self.execute_copies(d, destination_node.get_dir(d.name))
        for f in source_node.files:
            if f.copy_destination is not None:
                self._copy(f.relative_path, f.copy_destination.relative_path, recursive=False)
                self.report.files_copied += 1

    # ── deletes ────────────────────────────────────────────────────────────

    def _delete(self, rel: str, recursive: bool):
        path = self.destination.full_path(rel)
        kind = "dir " if recursive else "file"
        if self.dry_run:
            log(f"  [DEL-DRY] {kind} {path}")
            return
        self.destination.delete(path, recursive)
        log(f"  [DEL ✓] {kind} {rel}")

    def execute_deletes(self, destination_node: DirectoryNode):
        for d in destination_node.dirs:
            if d.to_be_deleted:
                self._delete(d.relative_path, recursive=True)
                self.report.dirs_deleted += 1
            else:
                self.execute_deletes(d)
        for f in destination_node.files:
            if f.to_be_deleted:
                self._delete(f.relative_path, recursive=False)
                self.report.files_deleted += 1

    def run(self, source_tree: DirectoryNode, destination_tree: DirectoryNode) -> ExecutionReport:
        """All copies first, then all deletions."""
        self.execute_copies(source_tree, destination_tree)
        self.execute_deletes(destination_tree)
        return self.report
