#!/usr/bin/env python3
"""
treesync  —  One-way, content-hash based directory sync over SSH
================================================================

Subcommands:
  init      Create a .treesync config file in the current directory.
  sync      Make the destination match the local tree (nearest .treesync).
  status    Show the profile and the state of its snapshot caches.
  snapshot  Print (or write) the snapshot of a local directory.

Run 'treesync <subcommand> --help' for more details.
"""
import sys
import argparse
from pathlib import Path


def _load_profile(args):
    """Locate the nearest .treesync and resolve the requested profile."""
    from treesync import config as _cfg
    from treesync.errors import ConfigError

    project_file = _cfg.find_project_file()
    if project_file is None:
        print("error: no .treesync file found in this directory or any parent.", file=sys.stderr)
        print("Run 'treesync init' to create one.", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        print(f"[config] Using {project_file}")

    try:
        data = _cfg.load_project_file(project_file)
        merged = dict(_cfg.load_global_config().get("defaults") or {})
        merged.update(_cfg.get_profile(data, args.profile or "default"))
        merged.setdefault("local_root", str(project_file.parent))
        return _cfg.profile_from_dict(merged)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


# ── init ─────────────────────────────────────────────────────────────────────

def cmd_init(args):
    """Create a .treesync profile file in the current directory."""
    from treesync import config as _cfg

    target = Path.cwd() / _cfg.PROJECT_FILE

    if target.exists() and not args.force:
        print(f"error: {_cfg.PROJECT_FILE} already exists in {Path.cwd()}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    global_cfg = _cfg.load_global_config()
    g_defaults = global_cfg.get("defaults") or {}

    local_root = str(Path(args.local or Path.cwd()).expanduser())

    remote_root = args.remote
    if not remote_root:
        default_rr = Path.cwd().name
        if sys.stdin.isatty():
            entered = input(f"Remote path (relative to base_remote) [{default_rr}]: ").strip()
            remote_root = entered or default_rr
        else:
            remote_root = default_rr

    server = args.server or g_defaults.get("server", "example.com")
    if not args.server and sys.stdin.isatty():
        val = input(f"Server hostname [{server}]: ").strip()
        if val:
            server = val

    user = args.user or g_defaults.get("user", _cfg.SSH_USER)
    port = args.port or int(g_defaults.get("port", _cfg.SSH_PORT))
    base_remote = args.base_remote or g_defaults.get("base_remote", "")
    hash_command = args.hash_command or g_defaults.get("hash_command", _cfg.HASH_COMMAND)
    profile_name = args.profile or "default"

    def _yq(value: str) -> str:
        """Wrap a string in YAML single quotes, escaping embedded single quotes."""
        return "'" + value.replace("'", "''") + "'"

    # Always use forward slashes in paths to avoid YAML backslash escape issues
    local_root_yaml = local_root.replace("\\", "/")

    lines = [
        f"# {_cfg.PROJECT_FILE} — treesync project configuration",
        "#",
        "# profiles: list of sync profiles for this project.",
        "# local_root is the source; remote_root is made to match it.",
        "# remote_root is relative to defaults.base_remote when it does not start with '/'.",
        "profiles:",
        f"  - name: {profile_name}",
        f"    server: {_yq(server)}",
        f"    port: {port}",
        f"    user: {_yq(user)}",
        f"    local_root: {_yq(local_root_yaml)}",
        f"    remote_root: {_yq(remote_root)}",
        f"    hash_command: {_yq(hash_command)}",
    ]

    if base_remote:
        lines += [
            "defaults:",
            f"  base_remote: {_yq(base_remote)}",
        ]

    content = "\n".join(lines) + "\n"

    if args.dry_run:
        print(f"[dry-run] Would write {target}:")
        print(content)
        return

    target.write_text(content, encoding="utf-8")
    print(f"Created {target}")
    if args.verbose:
        print(content)


# ── sync ─────────────────────────────────────────────────────────────────────

def cmd_sync(args):
    """Run sync using the nearest .treesync config file."""
    from treesync.config import SyncOptions
    from treesync.core.sync_engine import run_sync

    profile = _load_profile(args)
    options = SyncOptions(dry_run=args.dry_run, force_full_rehash=args.full)
    run_sync(profile, options, verbose=args.verbose)


# ── status ────────────────────────────────────────────────────────────────────

def _describe_cache(label: str, path):
    from treesync.state.snapshot_cache import SnapshotCache

    cache = SnapshotCache(path)
    if not cache.exists():
        print(f"{label}: {path} (not yet written)")
        return
    tree = cache.read_tree()
    captured = cache.codec.format_time(tree.captured_at) if tree.captured_at else "unknown"
    print(f"{label}: {path}")
    print(f"   captured {captured}, {len(tree.file_hashes())} file(s), "
          f"{sum(1 for _ in tree.iter_dirs())} dir(s)")


def cmd_status(args):
    """Show the profile and its snapshot caches."""
    profile = _load_profile(args)

    print(f"\nProfile      : {profile.name}")
    print(f"Source       : {profile.local_root}")
    print(f"Destination  : {profile.destination}")
    print(f"Transport    : {profile.transport}")
    print(f"Hash command : {profile.hash_command}")
    print()
    _describe_cache("Local cache ", profile.local_cache)
    _describe_cache("Remote cache", profile.remote_cache)


# ── snapshot ──────────────────────────────────────────────────────────────────

def cmd_snapshot(args):
    """Print or write the snapshot of a local directory."""
    from treesync.operations.local import LocalLocation
    from treesync.state.snapshot_codec import SnapshotCodec
    from treesync.utils.ignore_patterns import load_ignore_patterns
    from treesync.utils.logging import set_stream, set_verbose

    set_verbose(args.verbose)
    root = Path(args.path).expanduser().resolve()
    if not root.is_dir():
        print(f"error: {root} is not a directory.", file=sys.stderr)
        sys.exit(1)

    # stdout carries only the snapshot
    set_stream(sys.stderr)
    location = LocalLocation(root, ignore_patterns=load_ignore_patterns(root))
    tree = location.get_content_tree(use_cache=False, save=False)
    codec = SnapshotCodec()
    if args.output:
        codec.write(tree, Path(args.output))
        print(f"Wrote {args.output}")
    else:
        for line in codec.serialize(tree):
            print(line)


# ── main ──────────────────────────────────────────────────────────────────────

def main():
    """CLI entry point for treesync"""
    parser = argparse.ArgumentParser(
        prog="treesync",
        description="One-way, content-hash based directory sync over SSH",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── init ──────────────────────────────────────────────────────────────────
    init_p = subparsers.add_parser(
        "init",
        help="Create a .treesync config file in the current directory",
        description="Create a .treesync YAML config file for this project.",
    )
    init_p.add_argument("--local", metavar="PATH",
                        help="Local (source) root directory (default: current directory)")
    init_p.add_argument("--remote", metavar="PATH",
                        help="Remote (destination) root, relative to base_remote or absolute")
    init_p.add_argument("--server", metavar="HOST",
                        help="Remote server hostname or IP")
    init_p.add_argument("--user", metavar="NAME",
                        help="SSH username (default: root)")
    init_p.add_argument("--port", type=int, metavar="N",
                        help="SSH port (default: 22)")
    init_p.add_argument("--base-remote", metavar="PATH",
                        help="Base remote path prepended to relative remote roots")
    init_p.add_argument("--hash-command", metavar="NAME", choices=["sha256sum", "sha256"],
                        help="Remote hash command (default: sha256sum)")
    init_p.add_argument("--profile", metavar="NAME", default="default",
                        help="Profile name to create (default: default)")
    init_p.add_argument("--force", action="store_true",
                        help="Overwrite existing .treesync")
    init_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Preview without writing files")
    init_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show extra output")

    # ── sync ──────────────────────────────────────────────────────────────────
    sync_p = subparsers.add_parser(
        "sync",
        help="Make the destination match the local tree",
        description="Copy new/changed files and delete extra files on the destination.",
    )
    sync_p.add_argument("--profile", metavar="NAME", default="default",
                        help="Profile to use (default: default)")
    sync_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Show the copy/delete plan without applying it")
    sync_p.add_argument("-f", "--full", action="store_true",
                        help="Ignore cached hashes and rehash everything")
    sync_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show every file and command, not just actions")

    # ── status ────────────────────────────────────────────────────────────────
    status_p = subparsers.add_parser(
        "status",
        help="Show the profile and its snapshot caches",
        description="Show sync settings and cache state for the nearest .treesync config.",
    )
    status_p.add_argument("--profile", metavar="NAME", default="default",
                          help="Profile to use (default: default)")
    status_p.add_argument("-v", "--verbose", action="store_true",
                          help="Show extra output")

    # ── snapshot ──────────────────────────────────────────────────────────────
    snap_p = subparsers.add_parser(
        "snapshot",
        help="Print the snapshot (D/F/T lines) of a local directory",
        description="Hash a local directory and print or write its snapshot.",
    )
    snap_p.add_argument("path", metavar="PATH", help="Directory to snapshot")
    snap_p.add_argument("-o", "--output", metavar="FILE",
                        help="Write the snapshot to FILE instead of stdout")
    snap_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show extra output")

    args = parser.parse_args()

    if args.command == "init":
        cmd_init(args)
    elif args.command == "sync":
        cmd_sync(args)
    elif args.command == "status":
        cmd_status(args)
    elif args.command == "snapshot":
        cmd_snapshot(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
