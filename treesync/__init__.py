"""treesync — one-way, content-hash based directory sync over SSH"""
from .config import Profile, SyncOptions
from .core.content_tree import DirectoryNode, FileEntry, build_content_tree
from .core.planner import mark_copy_operations, mark_delete_operations, mark_sync_operations

__version__ = "0.3.0"

__all__ = [
    "Profile", "SyncOptions",
    "DirectoryNode", "FileEntry", "build_content_tree",
    "mark_copy_operations", "mark_delete_operations", "mark_sync_operations",
]
