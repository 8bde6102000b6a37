"""Structlog logger factory and the logging mixin used by safeio services."""

import logging
from typing import Any

import structlog


def get_struct_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger wrapping the stdlib logger ``name``.

    Routing through stdlib keeps safeio quiet in applications that never set
    up logging: per-attempt debug events are filtered by the stdlib level and
    only budget-exhaustion warnings surface.

    Args:
        name: The logger name, usually __name__
    """
    return structlog.wrap_logger(  # type: ignore[no-any-return]
        logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger
    )


class StructlogMixin:
    """Give a class a lazily created logger bound to ``service=<class name>``."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._logger: structlog.stdlib.BoundLogger | None = None

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if self._logger is None:
            self._logger = get_struct_logger(self.__class__.__module__).bind(
                service=self.__class__.__name__
            )
        return self._logger

    def log_error_with_context(
        self,
        event: str,
        error: BaseException,
        **context: Any,
    ) -> None:
        """Log ``error`` as a warning together with its diagnostic fields.

        The traceback is attached only when debug logging is enabled for this
        module and the error has actually been raised.

        Args:
            event: Snake_case event name
            error: The failure being reported
            **context: Extra structured fields
        """
        stdlib_logger = logging.getLogger(self.__class__.__module__)
        exc_info: BaseException | bool = False
        if stdlib_logger.isEnabledFor(logging.DEBUG) and error.__traceback__:
            exc_info = error

        self.logger.warning(
            event,
            error=str(error),
            error_type=type(error).__name__,
            exc_info=exc_info,
            **context,
        )
