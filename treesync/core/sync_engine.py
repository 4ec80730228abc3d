"""
Main sync engine - tree building, planning and execution
"""
import sys
import traceback
from dataclasses import dataclass
from typing import Optional

from .content_tree import DirectoryNode
from .executor import ExecutionReport, SyncExecutor
from .planner import PlanSummary, mark_sync_operations, summarize_plan
from ..config import Profile, SyncOptions
from ..errors import TreesyncError
from ..operations.hash_command import get_hash_command
from ..operations.local import LocalLocation
from ..operations.remote import RemoteLocation
from ..state.snapshot_cache import SnapshotCache
from ..utils.ignore_patterns import load_ignore_patterns
from ..utils.logging import echo, is_verbose, log, set_verbose, warn


@dataclass
class SyncResult:
    source_tree: DirectoryNode
    destination_tree: DirectoryNode
    plan: PlanSummary
    report: ExecutionReport


def open_locations(profile: Profile) -> tuple:
    """Build the (source, destination) locations described by *profile*."""
    patterns = load_ignore_patterns(profile.local_root)
    log(f"[ignore] {len(patterns)} pattern(s) loaded")
    source = LocalLocation(profile.local_root, SnapshotCache(profile.local_cache), patterns)
    destination_cache = SnapshotCache(profile.remote_cache)

    if profile.transport == "local":
        destination = LocalLocation(profile.remote_root, destination_cache, patterns)
        return source, destination

    if profile.transport == "external":
        from .external_ssh import ExternalSshScp
        transport = ExternalSshScp(profile)
    else:
        from .ssh_manager import SSHManager
        transport = SSHManager(profile)
    destination = RemoteLocation(transport, str(profile.remote_root),
                                 get_hash_command(profile.hash_command),
                                 destination_cache, ignore_patterns=patterns)
    return source, destination


def _show_tree(title: str, tree: DirectoryNode):
    log(title)
    for line in tree.show_indented():
        echo(f"    {line}")


def synchronize(source, destination, options: SyncOptions = SyncOptions()) -> SyncResult:
    """
    Make *destination* hold the same content as *source*.

    Raises on the first failing listing, parse or operation; anything already
    copied or deleted at that point stays as it is.
    """
    dry_run = options.dry_run
    use_cache = not options.force_full_rehash
    if options.force_full_rehash and not dry_run:
        for loc in (source, destination):
            if loc.cache is not None:
                loc.cache.clear()

    source_tree = source.get_content_tree(use_cache=use_cache, save=not dry_run)
    destination_tree = destination.get_content_tree(use_cache=use_cache, save=not dry_run)

    mark_sync_operations(source_tree, destination_tree)
    plan = summarize_plan(source_tree, destination_tree)
    log(f"[plan] copy dirs={plan.dirs_to_copy}  copy files={plan.files_to_copy}  "
        f"del dirs={plan.dirs_to_delete}  del files={plan.files_to_delete}  "
        f"(total={plan.total})")

    if dry_run or is_verbose():
        _show_tree("Source (after marking):", source_tree)
        _show_tree("Destination (after marking):", destination_tree)

    if plan.total == 0:
        log("[sync] Nothing to do — already in sync ✓")
        return SyncResult(source_tree, destination_tree, plan, ExecutionReport())

    if not dry_run and destination.cache is not None:
        # about to change the destination; its snapshot is stale from here on
        destination.cache.clear()

    executor = SyncExecutor(source, destination, dry_run=dry_run)
    log(f"[copy] {plan.dirs_to_copy + plan.files_to_copy} copy operation(s) …")
    executor.execute_copies(source_tree, destination_tree)
    log(f"[del] {plan.dirs_to_delete + plan.files_to_delete} delete operation(s) …")
    executor.execute_deletes(destination_tree)

    if not dry_run and source.cache is not None and destination.cache is not None:
        destination.cache.copy_from(source.cache)

    return SyncResult(source_tree, destination_tree, plan, executor.report)


def run_sync(profile: Profile, options: SyncOptions, verbose: bool = False,
             locations: Optional[tuple] = None) -> SyncResult:
    set_verbose(verbose)

    print(f"\n{'=' * 64}")
    print(f"  Sync  {profile.local_root}")
    print(f"   →   {profile.destination}")
    print(f"{'=' * 64}")
    if options.dry_run:
        print("  *** DRY-RUN — no files will be changed ***")
    if options.force_full_rehash:
        print("  *** FULL — cached hashes ignored ***")
    print()

    source, destination = locations or open_locations(profile)
    try:
        result = synchronize(source, destination, options)
    except KeyboardInterrupt:
        print()
        warn("Interrupted by user. Operations already done are kept; run sync again.")
        sys.exit(130)
    except Exception as exc:
        kind = "" if isinstance(exc, TreesyncError) else f"{type(exc).__name__}: "
        warn(f"Sync failed: {kind}{exc}")
        if verbose:
            traceback.print_exc()
        sys.exit(1)
    finally:
        source.close()
        destination.close()

    report = result.report
    print()
    print(f"{'─' * 64}")
    print(" SUMMARY" + (" (dry run)" if options.dry_run else ""))
    print(f"  Dirs copied   : {report.dirs_copied}")
    print(f"  Files copied  : {report.files_copied}")
    print(f"  Dirs deleted  : {report.dirs_deleted}")
    print(f"  Files deleted : {report.files_deleted}")
    print(f"{'─' * 64}")
    return result
