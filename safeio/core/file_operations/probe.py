"""Existence probes confirming that a removal has fully taken effect.

A plain existence check is not enough for files: a delete-pending file can
already be invisible to ``os.path.exists`` while something still holds it.
The file probe therefore tries to open the path for read-write access and
take an exclusive, non-blocking lock on it. Only "not found" counts as gone.
"""

import os
import sys
from pathlib import Path

from safeio.core.structlog_logger import get_struct_logger

from .enums import ProbeOutcome


if sys.platform == "win32":
    import msvcrt
else:
    import fcntl


logger = get_struct_logger(__name__)


def _try_exclusive_lock(fd: int) -> bool:
    """Take and immediately release an exclusive lock on ``fd``.

    Returns:
        False when another holder prevents the lock
    """
    if sys.platform == "win32":
        try:
            msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
        except OSError:
            return False
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
        return True

    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        return False
    fcntl.flock(fd, fcntl.LOCK_UN)
    return True


def probe_file(path: Path) -> ProbeOutcome:
    """Check whether a file removal has taken full effect.

    The probe handle is always closed before returning, since a handle left
    open would itself keep the file from being deleted.

    Args:
        path: File path that a removal was just attempted on

    Returns:
        GONE if the path no longer resolves, LOCKED if something still holds
        it (or it is delete-pending), PRESENT if it exists and is free
    """
    flags = os.O_RDWR | getattr(os, "O_BINARY", 0)
    try:
        fd = os.open(path, flags)
    except FileNotFoundError:
        return ProbeOutcome.GONE
    except OSError as e:
        logger.debug("probe_open_failed", path=str(path), error=str(e))
        return ProbeOutcome.LOCKED

    try:
        if not _try_exclusive_lock(fd):
            return ProbeOutcome.LOCKED
        return ProbeOutcome.PRESENT
    finally:
        os.close(fd)


def probe_directory(path: Path) -> ProbeOutcome:
    """Check whether a directory removal has taken full effect.

    No exclusive-open probe is meaningful for a directory as a whole, so this
    only checks that nothing exists at the path anymore.
    """
    if os.path.lexists(path):
        return ProbeOutcome.PRESENT
    return ProbeOutcome.GONE
