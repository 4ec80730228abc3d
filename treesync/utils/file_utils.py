"""
File utilities (hashing, path helpers)
"""
import hashlib
from datetime import datetime, timezone
from pathlib import Path

from .. import config as _cfg


def hash_file(path: Path, algorithm: str = _cfg.HASH_ALGORITHM) -> str:
    """Compute the hex digest of a local file"""
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def normalised_dir(base_dir: str) -> str:
    """Put "/" at the end of a directory name if it is not already there."""
    return base_dir if base_dir.endswith("/") else base_dir + "/"


def mtime_utc(path: Path) -> datetime:
    """Modification time of a local file as an aware UTC datetime."""
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def capture_time() -> datetime:
    """Current UTC time truncated to whole milliseconds (the snapshot resolution)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)
