"""Logging configuration models for safeio."""

import logging
from enum import Enum

from pydantic import Field, field_validator

from safeio.models.base import SafeIOBaseModel


_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LogFormat(str, Enum):
    """Renderer presets understood by ``configure_structlog``."""

    SIMPLE = "simple"
    CONSOLE = "console"
    JSON = "json"


class LoggingConfig(SafeIOBaseModel):
    """How an application wants safeio's structlog output rendered.

    safeio never applies this by itself; pass it to
    ``setup_structlog_from_config``.
    """

    level: str = Field(default="WARNING", description="Minimum level for safeio loggers")
    format: LogFormat = Field(default=LogFormat.CONSOLE, description="Renderer preset")
    colored: bool = Field(default=False, description="Colorize console renderers")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise the level name and reject unknown ones."""
        name = v.strip().upper()
        if name not in _LEVEL_NAMES:
            raise ValueError(f"Log level must be one of {list(_LEVEL_NAMES)}")
        return name

    def get_log_level_int(self) -> int:
        """Numeric stdlib level for ``level``."""
        return int(getattr(logging, self.level))


def create_default_logging_config() -> LoggingConfig:
    """Warnings only, plain console renderer."""
    return LoggingConfig()


def create_developer_logging_config() -> LoggingConfig:
    """Debug level with colors, so every retry attempt is visible."""
    return LoggingConfig(level="DEBUG", format=LogFormat.CONSOLE, colored=True)
