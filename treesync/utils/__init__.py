"""Utilities (logging, retry, patterns, file utilities)"""
from .logging import echo, log, vlog, warn, set_verbose, set_stream
from .retry import retried
from .ignore_patterns import load_ignore_patterns, compile_patterns, is_ignored
from .file_utils import hash_file, normalised_dir, mtime_utc, capture_time

__all__ = [
    "echo", "log", "vlog", "warn", "set_verbose", "set_stream",
    "retried",
    "load_ignore_patterns", "compile_patterns", "is_ignored",
    "hash_file", "normalised_dir", "mtime_utc", "capture_time",
]
