"""
Retry decorator for SSH connection-level failures
"""
import functools
import socket
import time

import paramiko

from .logging import log, warn
from ..config import RETRY_MAX, RETRY_BASE_DELAY

# Command failures (non-zero exit) are never retried: they abort the run.
RETRYABLE_ERRORS = (paramiko.SSHException, EOFError, ConnectionError, socket.timeout)


def retried(fn):
    """Decorator: retry fn up to RETRY_MAX times with exponential back-off."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        delay = RETRY_BASE_DELAY
        for attempt in range(1, RETRY_MAX + 1):
            try:
                return fn(*args, **kwargs)
            except RETRYABLE_ERRORS as exc:
                if attempt == RETRY_MAX:
                    raise
                warn(f"{fn.__name__} failed (attempt {attempt}/{RETRY_MAX}): {exc}")
                log(f"  retrying in {delay:.0f}s …")
                time.sleep(delay)
                delay = min(delay * 2, 60)

    return wrapper
