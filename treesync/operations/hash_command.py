"""
Hash commands run on a remote host, and parsing of their output
"""
from dataclasses import dataclass
from typing import NamedTuple, Optional

from ..config import BENIGN_HASH_LINE_PATHS
from ..errors import ConfigError, ListingError


class FileHash(NamedTuple):
    """A file path relative to a base directory, and the hash of its content."""

    relative_path: str
    hash: str


@dataclass(frozen=True)
class HashCommand:
    """
    A command that prints one line per file in the fixed-width form
    ``<hash><spacer><full path>``, e.g. ``sha256sum`` (64 hex digits, two
    characters of spacer).
    """

    command: tuple
    length: int
    spacer_len: int

    def parse_file_hash_line(self, base_dir: str, line: str) -> Optional[FileHash]:
        """
        Parse one output line relative to *base_dir* (which ends with "/").
        Returns None for blank lines and known sentinel lines; raises
        ListingError for anything else that does not name a file in base_dir.
        """
        if not line.strip():
            return None
        digest = line[:self.length]
        full_path = line[self.length + self.spacer_len:]
        if full_path in BENIGN_HASH_LINE_PATHS:
            return None
        if len(digest) != self.length or " " in digest or not full_path:
            raise ListingError(f"Malformed hash line from {self}: {line!r}")
        if not full_path.startswith(base_dir):
            raise ListingError(f"File {full_path} from hash line is not in base dir {base_dir}")
        return FileHash(full_path[len(base_dir):], digest)

    def __str__(self):
        return " ".join(self.command)


SHA256SUM = HashCommand(("sha256sum",), 64, 2)
SHA256 = HashCommand(("sha256", "-r"), 64, 1)

HASH_COMMANDS = {
    "sha256sum": SHA256SUM,
    "sha256": SHA256,
}


def get_hash_command(name: str) -> HashCommand:
    try:
        return HASH_COMMANDS[name]
    except KeyError:
        raise ConfigError(
            f"unknown hash command {name!r} (choose from {', '.join(sorted(HASH_COMMANDS))})"
        ) from None
