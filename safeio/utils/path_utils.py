"""Path utilities: base-directory resolution and segment combining.

The base directory is a single process-wide value. It is initialised lazily
from ``SafeIOSettings.base_directory`` (falling back to the current working
directory), read and written under a lock, and always stored as an absolute
path. The delete and copy operations never read it; only the helpers in
this module do.
"""

import os
import re
import threading
from pathlib import Path

from safeio.config.settings import get_settings
from safeio.core.errors import ConfigurationError
from safeio.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

PathLike = str | os.PathLike[str]

_base_directory: Path | None = None
_base_directory_lock = threading.Lock()

_DUPLICATE_SLASHES = re.compile(r"/{2,}")


def _require_text(value: PathLike | None, name: str) -> str:
    if value is None:
        raise ConfigurationError(f"{name} must not be None")
    text = os.fspath(value)
    if not text.strip():
        raise ConfigurationError(f"{name} must not be empty or whitespace")
    return text


def _absolute(path: PathLike) -> Path:
    """Absolute, normalised form of ``path`` without resolving symlinks."""
    return Path(os.path.abspath(os.path.expanduser(os.fspath(path))))


def get_base_directory() -> Path:
    """Return the base directory used to resolve relative paths."""
    global _base_directory
    with _base_directory_lock:
        if _base_directory is None:
            configured = get_settings().base_directory
            _base_directory = _absolute(configured) if configured else Path.cwd()
        return _base_directory


def set_base_directory(path: PathLike) -> Path:
    """Set the base directory.

    Args:
        path: New base directory; relative values are made absolute against cwd

    Returns:
        The absolute base directory that was stored

    Raises:
        ConfigurationError: If ``path`` is None, empty or whitespace
    """
    global _base_directory
    text = _require_text(path, "base directory")
    absolute = _absolute(text)
    with _base_directory_lock:
        _base_directory = absolute
    logger.debug("base_directory_set", base_directory=str(absolute))
    return absolute


def reset_base_directory() -> None:
    """Forget the base directory so the next read re-initialises it."""
    global _base_directory
    with _base_directory_lock:
        _base_directory = None


def get_full_path(path: PathLike) -> Path:
    """Resolve ``path`` against the base directory.

    Absolute paths are only normalised; relative ones are joined onto the
    base directory first.

    Raises:
        ConfigurationError: If ``path`` is None, empty or whitespace
    """
    text = _require_text(path, "path")
    candidate = Path(os.path.expanduser(text))
    if candidate.is_absolute():
        return Path(os.path.normpath(candidate))
    return Path(os.path.normpath(get_base_directory() / candidate))


def get_relative_path(path: PathLike) -> Path:
    """Express ``path`` relative to the base directory.

    Raises:
        ConfigurationError: If ``path`` is None, empty or whitespace
    """
    full = get_full_path(path)
    return Path(os.path.relpath(full, get_base_directory()))


def combine_from_base(*paths: PathLike) -> Path:
    """Join ``paths`` and resolve the result against the base directory.

    Raises:
        ConfigurationError: If no segment is given
    """
    if not paths:
        raise ConfigurationError("At least one path segment is required")
    merged = os.path.join(*(os.fspath(p) for p in paths))
    return get_full_path(merged)


def combine(*segments: PathLike | None) -> Path:
    """Join file system path segments, skipping None and blank ones.

    Segments are stripped of surrounding whitespace. As with
    ``os.path.join``, an absolute segment discards everything before it.

    Examples:
        >>> combine(None, " ", "folder", "sub", "file.txt")
        PosixPath('folder/sub/file.txt')

    Raises:
        ConfigurationError: If no usable segment remains
    """
    usable = [
        os.fspath(s).strip()
        for s in segments
        if s is not None and os.fspath(s).strip()
    ]
    if not usable:
        raise ConfigurationError("No usable path segments")
    return Path(os.path.join(*usable))


def _split_tail(segment: str) -> tuple[str, str]:
    """Split ``segment`` into (path part, query/fragment part)."""
    cuts = [i for i in (segment.find("?"), segment.find("#")) if i >= 0]
    if not cuts:
        return segment, ""
    cut = min(cuts)
    return segment[:cut], segment[cut:]


def _normalize_web_part(part: str) -> str:
    part = part.replace("\\", "/")
    part = _DUPLICATE_SLASHES.sub("/", part)
    return part.strip("/")


def web_combine(*segments: str | None) -> str:
    """Join URL or URL-path segments with single forward slashes.

    The scheme and authority of the first segment are preserved, backslashes
    become forward slashes, duplicate slashes collapse, and only the
    query/fragment of the last segment is kept.

    Examples:
        >>> web_combine("https://example.com/", "/api/", "v1//", "/items")
        'https://example.com/api/v1/items'
        >>> web_combine("https://example.com/base", "api", "items?id=1#top")
        'https://example.com/base/api/items?id=1#top'

    Raises:
        ConfigurationError: If no usable segment remains
    """
    usable = [s.strip() for s in segments if s is not None and s.strip()]
    if not usable:
        raise ConfigurationError("No usable URL segments")

    prefix = ""
    parts: list[str] = []

    first_head, _ = _split_tail(usable[0])
    scheme_index = first_head.find("://")
    if scheme_index >= 0:
        rest = first_head[scheme_index + 3 :]
        slash_index = rest.find("/")
        if slash_index >= 0:
            prefix = first_head[: scheme_index + 3] + rest[:slash_index]
            parts.append(_normalize_web_part(rest[slash_index + 1 :]))
        else:
            # A bare origin
            prefix = first_head
    else:
        parts.append(_normalize_web_part(first_head))

    for segment in usable[1:]:
        head, _ = _split_tail(segment)
        parts.append(_normalize_web_part(head))

    _, tail = _split_tail(usable[-1])

    joined = "/".join(p for p in parts if p)
    if prefix:
        result = f"{prefix}/{joined}" if joined else prefix
    else:
        result = joined
    return result + tail
