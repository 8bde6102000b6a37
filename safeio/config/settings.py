"""Process-wide settings access."""

import threading

from safeio.core.structlog_logger import get_struct_logger

from .models.settings import SafeIOSettings


logger = get_struct_logger(__name__)

_settings: SafeIOSettings | None = None
_settings_lock = threading.Lock()


def get_settings() -> SafeIOSettings:
    """Return the cached settings, loading them from the environment on first use."""
    global _settings
    with _settings_lock:
        if _settings is None:
            _settings = SafeIOSettings()
            logger.debug(
                "settings_loaded",
                default_timeout=_settings.default_timeout,
                default_retry_interval=_settings.default_retry_interval,
                default_max_retries=_settings.default_max_retries,
            )
        return _settings


def set_settings(settings: SafeIOSettings) -> None:
    """Replace the cached settings."""
    global _settings
    with _settings_lock:
        _settings = settings


def reset_settings() -> None:
    """Drop the cached settings so the next access reloads them."""
    global _settings
    with _settings_lock:
        _settings = None
