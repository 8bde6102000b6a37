"""Configuration models for safeio."""

from .logging import (
    LogFormat,
    LoggingConfig,
    create_default_logging_config,
    create_developer_logging_config,
)
from .settings import SafeIOSettings


__all__ = [
    "LogFormat",
    "LoggingConfig",
    "SafeIOSettings",
    "create_default_logging_config",
    "create_developer_logging_config",
]
