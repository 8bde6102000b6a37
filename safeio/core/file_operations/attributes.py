"""File attribute and volume helpers used by the atomic copier."""

import os
import stat
from pathlib import Path

from safeio.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)


def clear_readonly(path: Path) -> bool:
    """Make ``path`` writable if it carries a read-only attribute.

    Copies sourced from read-only media inherit the flag, and a read-only
    destination cannot be replaced on every platform. Failures are ignored:
    the following replace step reports the real problem.

    Returns:
        True if the attribute was present and has been cleared
    """
    try:
        mode = os.stat(path, follow_symlinks=False).st_mode
    except OSError:
        return False

    if not stat.S_ISREG(mode) or mode & stat.S_IWRITE:
        return False

    try:
        os.chmod(path, mode | stat.S_IWRITE)
    except OSError as e:
        logger.debug("clear_readonly_failed", path=str(path), error=str(e))
        return False

    logger.debug("readonly_cleared", path=str(path))
    return True


def is_same_volume(path_a: Path, path_b: Path) -> bool:
    """Report whether two existing paths live on the same storage volume.

    A rename between them is then a single atomic file system operation.
    """
    try:
        return os.stat(path_a).st_dev == os.stat(path_b).st_dev
    except OSError:
        return False
