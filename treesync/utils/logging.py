"""
Console logging for treesync: timestamped lines, a verbose switch, and a
selectable stream (the snapshot command keeps stdout for its own output).
"""
from datetime import datetime
from typing import Optional, TextIO

_verbose = False
_stream: Optional[TextIO] = None  # None → sys.stdout at the time of the call


def set_verbose(verbose: bool):
    """Set the verbose flag"""
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    return _verbose


def set_stream(stream: Optional[TextIO]):
    """Send log output to *stream*; None goes back to stdout."""
    global _stream
    _stream = stream


def echo(msg: str):
    """Write a line to the log stream without a timestamp"""
    print(msg, file=_stream, flush=True)


def log(msg: str):
    """Log a message with timestamp"""
    ts = datetime.now().strftime("%H:%M:%S")
    echo(f"[{ts}] {msg}")


def vlog(msg: str):
    """Log a verbose message (only if verbose mode is enabled)"""
    if _verbose:
        log(msg)


def warn(msg: str):
    """Log a warning message"""
    log(f"⚠  {msg}")
