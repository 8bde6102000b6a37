"""Opt-in structlog setup for applications using safeio.

Nothing here runs on import. Without a call to one of these functions the
safeio loggers behave like plain stdlib loggers named after their module.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.processors import JSONRenderer


if TYPE_CHECKING:
    from safeio.config.models.logging import LoggingConfig


PACKAGE_LOGGER = "safeio"
_HANDLER_MARKER = "_safeio_handler"


def _shared_processors() -> list[Any]:
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer_processors(log_format: str, colored: bool) -> list[Any]:
    if log_format == "json":
        return [structlog.processors.format_exc_info, JSONRenderer()]
    if log_format == "simple":
        return [structlog.dev.ConsoleRenderer(colors=colored, pad_event_to=0)]
    return [structlog.dev.ConsoleRenderer(colors=colored)]


def _install_handler(level: int) -> logging.Logger:
    """Attach one stderr handler to the package logger, at most once."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    if not any(getattr(h, _HANDLER_MARKER, False) for h in package_logger.handlers):
        # structlog already rendered the line
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        setattr(handler, _HANDLER_MARKER, True)
        package_logger.addHandler(handler)

    return package_logger


def configure_structlog(
    log_format: str = "console",
    level: int = logging.WARNING,
    colored: bool = False,
) -> None:
    """Configure structlog and route safeio output to stderr.

    Args:
        log_format: "console", "simple" (unpadded console) or "json"
        level: Minimum stdlib level for the ``safeio`` logger tree
        colored: Colorize console output
    """
    _install_handler(level)
    structlog.configure(
        processors=_shared_processors() + _renderer_processors(log_format, colored),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def setup_structlog_from_config(config: "LoggingConfig") -> None:
    """Set up structlog from a LoggingConfig."""
    # use_enum_values may already have turned the format into a plain string
    log_format = getattr(config.format, "value", config.format)

    configure_structlog(
        log_format=log_format,
        level=config.get_log_level_int(),
        colored=config.colored,
    )


def setup_structlog_simple(
    level: int | str = logging.WARNING,
    log_format: str = "console",
    colored: bool = False,
) -> None:
    """Set up structlog from a level given as number or name.

    Unknown level names fall back to WARNING.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    configure_structlog(log_format=log_format, level=level, colored=colored)
