"""
Local process execution with an explicit result
"""
import subprocess
from dataclasses import dataclass
from typing import Sequence

from ..errors import CommandError
from ..utils.logging import vlog


@dataclass
class CommandResult:
    """Outcome of one command: what ran, its exit status and captured output."""

    description: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def check(self) -> "CommandResult":
        """Raise CommandError unless the command exited with status 0."""
        if not self.ok:
            raise CommandError(self)
        return self

    def lines(self) -> list:
        return self.stdout.splitlines()


def run_command(argv: Sequence[str], description: str = "") -> CommandResult:
    """Run a local program to completion and capture its output (no shell)."""
    description = description or " ".join(argv)
    vlog(f"  EXECUTE: {description}")
    proc = subprocess.run(
        list(argv),
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    return CommandResult(description, proc.returncode, proc.stdout, proc.stderr)
