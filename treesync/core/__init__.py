"""Core functionality: content trees, planning and execution"""
from .content_tree import FileEntry, DirectoryNode, build_content_tree
from .planner import (
    PlanSummary, mark_copy_operations, mark_delete_operations,
    mark_sync_operations, summarize_plan,
)
from .executor import ExecutionReport, SyncExecutor

__all__ = [
    "FileEntry", "DirectoryNode", "build_content_tree",
    "PlanSummary", "mark_copy_operations", "mark_delete_operations",
    "mark_sync_operations", "summarize_plan",
    "ExecutionReport", "SyncExecutor",
]
