"""
Exceptions raised by treesync
"""
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .core.shell import CommandResult


class TreesyncError(Exception):
    """Base class for all treesync errors."""


class ConfigError(TreesyncError):
    """Missing or invalid project configuration."""


class InvalidPathError(TreesyncError, ValueError):
    """An empty or otherwise unusable relative path was given to a content tree."""


class InvalidHashError(TreesyncError, ValueError):
    """A file was added to a content tree without a content hash."""


class SnapshotParseError(TreesyncError):
    """A snapshot file contains a line that is not a T, D or F record."""

    def __init__(self, line_number: int, line: str, source: str = "<snapshot>"):
        self.line_number = line_number
        self.line = line
        self.source = source
        super().__init__(f"{source}:{line_number}: invalid line in snapshot: {line!r}")


class ListingError(TreesyncError):
    """A directory or hash listing produced output that cannot be trusted."""


class CommandError(TreesyncError):
    """An external or remote command exited with a non-zero status."""

    def __init__(self, result: "CommandResult"):
        self.result = result
        msg = f"{result.description}: exit status = {result.exit_code}"
        stderr = (result.stderr or "").strip()
        if stderr:
            msg += f"\nstderr: {stderr}"
        super().__init__(msg)
