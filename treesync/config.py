"""
Configuration for treesync
"""
import hashlib
import os
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional

from .errors import ConfigError

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS  ── overridden by YAML config via profile_from_dict()
# ══════════════════════════════════════════════════════════════════════════════

SSH_PORT = 22
SSH_USER = "root"

# "paramiko" (built-in SSH/SFTP), "external" (ssh/scp programs) or "local"
TRANSPORT = "paramiko"
SSH_PROGRAM = "ssh"
SCP_PROGRAM = "scp"

# Remote hash command; must produce the same digest as HASH_ALGORITHM locally
HASH_COMMAND = "sha256sum"
HASH_ALGORITHM = "sha256"

STIGNORE_FILE = ".stignore"
PROJECT_FILE = ".treesync"

# Retry settings (connection-level failures only)
RETRY_MAX = 5
RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt

# Paths a remote hash command may print that do not name a real file.
# `xargs` without -r digests its (empty) stdin and reports it as "-".
BENIGN_HASH_LINE_PATHS = frozenset({"-"})


# ══════════════════════════════════════════════════════════════════════════════
#  SNAPSHOT FORMAT  ── immutable, injected into SnapshotCodec
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SnapshotFormat:
    """Line patterns and timestamp layout of the snapshot text format."""

    dir_line: "re.Pattern[str]" = re.compile(r"^D (.*)$")
    file_line: "re.Pattern[str]" = re.compile(r"^F ([^ ]+) (.*)$")
    time_line: "re.Pattern[str]" = re.compile(r"^T (.*)$")
    # Seconds resolution; milliseconds are appended/parsed separately
    time_format: str = "%Y-%m-%d %H:%M:%S"
    parse_format: str = "%Y-%m-%d %H:%M:%S.%f %z"


DEFAULT_SNAPSHOT_FORMAT = SnapshotFormat()


# ══════════════════════════════════════════════════════════════════════════════
#  RUN OPTIONS & PROFILE
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SyncOptions:
    """Options for one sync run."""

    dry_run: bool = False
    force_full_rehash: bool = False


@dataclass
class Profile:
    """A resolved sync profile: where the source and destination live."""

    name: str = "default"
    server: Optional[str] = None
    port: int = SSH_PORT
    user: str = SSH_USER
    ssh_key: Optional[str] = None
    ssh_password: Optional[str] = None
    local_root: Path = field(default_factory=lambda: Path("."))
    remote_root: PurePosixPath = field(default_factory=lambda: PurePosixPath("/"))
    transport: str = TRANSPORT
    ssh_program: list = field(default_factory=lambda: [SSH_PROGRAM])
    scp_program: list = field(default_factory=lambda: [SCP_PROGRAM])
    hash_command: str = HASH_COMMAND
    local_cache: Optional[Path] = None
    remote_cache: Optional[Path] = None

    @property
    def user_at_host(self) -> str:
        return f"{self.user}@{self.server}"

    @property
    def destination(self) -> str:
        if self.transport == "local":
            return str(self.remote_root)
        return f"{self.user_at_host}:{self.port}:{self.remote_root}"


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/treesync/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for treesync."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "treesync"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "treesync"
    return Path.home() / ".config" / "treesync"


def get_cache_dir() -> Path:
    """Return the directory holding default snapshot cache files."""
    xdg = os.environ.get("XDG_CACHE_HOME", "")
    if xdg:
        return Path(xdg) / "treesync"
    if os.name == "nt":
        local = os.environ.get("LOCALAPPDATA", "")
        if local:
            return Path(local) / "treesync" / "cache"
    return Path.home() / ".cache" / "treesync"


def load_global_config() -> dict:
    """Load global config from the treesync config directory."""
    import yaml

    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


# ══════════════════════════════════════════════════════════════════════════════
#  PROJECT CONFIG FILE  ── .treesync (searched upward)
# ══════════════════════════════════════════════════════════════════════════════

def find_project_file(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a .treesync YAML file.
    Returns the Path if found, or None if no .treesync exists in any parent.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / PROJECT_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_project_file(path: Path) -> dict:
    """Parse a .treesync YAML file and return its contents as a dict."""
    import yaml

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return data


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a .treesync or config.yaml data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults.
    """
    defaults = data.get("defaults") or {}
    profiles = data.get("profiles") or []
    if not profiles:
        return dict(defaults)
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None:
        profile = profiles[0]
    merged = dict(defaults)
    merged.update(profile)
    return merged


def _as_argv(value) -> list:
    if isinstance(value, str):
        return value.split()
    return [str(v) for v in value]


def _default_cache_file(profile: Profile, role: str) -> Path:
    key = hashlib.sha1(
        f"{profile.local_root}|{profile.server}|{profile.remote_root}".encode("utf-8")
    ).hexdigest()[:12]
    return get_cache_dir() / f"{profile.name}.{key}.{role}.content.txt"


def profile_from_dict(data: dict) -> Profile:
    """
    Build a Profile from a flat profile dict.
    Supports keys: name, server, port, user, ssh_key, ssh_password,
                   local_root, remote_root, base_remote (prepended to
                   remote_root if remote_root is relative), transport,
                   ssh_program, scp_program, hash_command,
                   local_cache, remote_cache.
    """
    profile = Profile()
    if "name" in data:
        profile.name = str(data["name"])
    if data.get("server"):
        profile.server = str(data["server"])
    if "port" in data:
        profile.port = int(data["port"])
    if "user" in data:
        profile.user = str(data["user"])
    elif "username" in data:
        profile.user = str(data["username"])
    if data.get("ssh_key"):
        profile.ssh_key = str(data["ssh_key"])
    if data.get("ssh_password"):
        profile.ssh_password = str(data["ssh_password"])
    if "local_root" in data:
        profile.local_root = Path(data["local_root"]).expanduser().resolve()
    if "remote_root" in data:
        rr = str(data["remote_root"])
        base = str(data.get("base_remote") or "").rstrip("/")
        if base and not rr.startswith("/"):
            rr = f"{base}/{rr}"
        profile.remote_root = PurePosixPath(rr)
    if "transport" in data:
        profile.transport = str(data["transport"])
    if "ssh_program" in data:
        profile.ssh_program = _as_argv(data["ssh_program"])
    if "scp_program" in data:
        profile.scp_program = _as_argv(data["scp_program"])
    if "hash_command" in data:
        profile.hash_command = str(data["hash_command"])

    if profile.transport not in ("paramiko", "external", "local"):
        raise ConfigError(f"unknown transport {profile.transport!r}")
    if profile.transport != "local" and not profile.server:
        raise ConfigError(f"profile {profile.name!r} has no server")

    if data.get("local_cache"):
        profile.local_cache = Path(data["local_cache"]).expanduser()
    else:
        profile.local_cache = _default_cache_file(profile, "local")
    if data.get("remote_cache"):
        profile.remote_cache = Path(data["remote_cache"]).expanduser()
    else:
        profile.remote_cache = _default_cache_file(profile, "remote")
    return profile
