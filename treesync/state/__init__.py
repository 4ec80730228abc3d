"""Persisted snapshots (codec and cache)"""
from .snapshot_codec import SnapshotCodec
from .snapshot_cache import SnapshotCache

__all__ = ["SnapshotCodec", "SnapshotCache"]
