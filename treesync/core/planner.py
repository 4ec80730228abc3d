"""
Sync planning: mark the copy and delete operations that make a destination
content tree match a source content tree.

Both passes only read the *other* tree and only write markers on their own
tree, so they are independent of each other and of the order they run in.
"""
from dataclasses import dataclass

from .content_tree import DirectoryNode


@dataclass
class PlanSummary:
    """Counts of the operations marked on a pair of content trees."""

    dirs_to_copy: int = 0
    files_to_copy: int = 0
    dirs_to_delete: int = 0
    files_to_delete: int = 0

    @property
    def total(self) -> int:
        return self.dirs_to_copy + self.files_to_copy + self.dirs_to_delete + self.files_to_delete


def mark_copy_operations(source: DirectoryNode, destination: DirectoryNode):
    """
    Mark everything under *source* that is missing from, or different in,
    the corresponding *destination* directory.

    A missing sub-directory is marked as a whole; its contents come with it.
    """
    for d in source.dirs:
        dest_dir = destination.get_dir(d.name)
        if dest_dir is not None:
            mark_copy_operations(d, dest_dir)
        else:
            d.mark_to_copy(destination)
    for f in source.files:
        dest_file = destination.get_file(f.name)
        if dest_file is None or dest_file.hash != f.hash:
            f.mark_to_copy(destination)


def mark_delete_operations(destination: DirectoryNode, source: DirectoryNode):
    """
    Mark everything under *destination* that does not exist in the
    corresponding *source* directory. Files that exist on both sides with
    different content are left alone; the copy overwrites them.
    """
    for d in destination.dirs:
        source_dir = source.get_dir(d.name)
        if source_dir is None:
            d.mark_to_delete()
        else:
            mark_delete_operations(d, source_dir)
    for f in destination.files:
        if source.get_file(f.name) is None:
            f.mark_to_delete()


def mark_sync_operations(source: DirectoryNode, destination: DirectoryNode):
    """Mark copies on *source* and deletions on *destination*."""
    mark_copy_operations(source, destination)
    mark_delete_operations(destination, source)


def _count(node: DirectoryNode, summary: PlanSummary):
    for d in node.dirs:
        if d.copy_destination is not None:
            summary.dirs_to_copy += 1
        elif d.to_be_deleted:
            summary.dirs_to_delete += 1
        else:
            _count(d, summary)
    for f in node.files:
        if f.copy_destination is not None:
            summary.files_to_copy += 1
        if f.to_be_deleted:
            summary.files_to_delete += 1


def summarize_plan(source: DirectoryNode, destination: DirectoryNode) -> PlanSummary:
    """Count the marked operations (a marked directory counts once)."""
    summary = PlanSummary()
    _count(source, summary)
    _count(destination, summary)
    return summary
