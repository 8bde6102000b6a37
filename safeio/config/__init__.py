"""Configuration package for safeio."""

from .models import LogFormat, LoggingConfig, SafeIOSettings
from .settings import get_settings, reset_settings, set_settings


__all__ = [
    "LogFormat",
    "LoggingConfig",
    "SafeIOSettings",
    "get_settings",
    "reset_settings",
    "set_settings",
]
