from .errors import (
    ConfigurationError,
    DestinationExistsError,
    OperationCancelledError,
    OperationTimeoutError,
    SafeIOError,
    SourceNotFoundError,
)
from .structlog_config import (
    configure_structlog,
    setup_structlog_from_config,
    setup_structlog_simple,
)
from .structlog_logger import StructlogMixin, get_struct_logger


__all__ = [
    "configure_structlog",
    "setup_structlog_from_config",
    "setup_structlog_simple",
    "get_struct_logger",
    "StructlogMixin",
    "SafeIOError",
    "ConfigurationError",
    "OperationTimeoutError",
    "OperationCancelledError",
    "DestinationExistsError",
    "SourceNotFoundError",
]
