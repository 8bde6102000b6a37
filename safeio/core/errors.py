"""Exception hierarchy for safeio.

Every failure surfaced to a caller derives from ``SafeIOError``. Where a
built-in exception already names the failure (``TimeoutError``,
``FileExistsError``, ...), the safeio error also derives from it so callers
can catch either.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from safeio.core.file_operations.models import OperationBudget


class SafeIOError(Exception):
    """Base exception for all safeio failures."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        return self.message


class ConfigurationError(SafeIOError, ValueError):
    """Invalid budget or argument, rejected before any I/O."""


class OperationTimeoutError(SafeIOError, TimeoutError):
    """The time or attempt budget ran out before the operation was confirmed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        budget: "OperationBudget | None" = None,
        attempts: int = 0,
        elapsed: float = 0.0,
        destination: Path | str | None = None,
    ) -> None:
        super().__init__(message, path=path)
        self.budget = budget
        self.attempts = attempts
        self.elapsed = elapsed
        self.destination = Path(destination) if destination is not None else None

    def to_context(self) -> dict[str, Any]:
        """Return the diagnostic fields as a flat dictionary for logging."""
        return {
            "path": str(self.path) if self.path else None,
            "destination": str(self.destination) if self.destination else None,
            "attempts": self.attempts,
            "elapsed": round(self.elapsed, 3),
            "budget": self.budget.to_dict() if self.budget else None,
        }


class OperationCancelledError(SafeIOError):
    """The caller's cancellation signal fired while the operation was running."""


class DestinationExistsError(SafeIOError, FileExistsError):
    """Destination exists and overwrite was not requested."""


class SourceNotFoundError(SafeIOError, FileNotFoundError):
    """Copy source file or source directory does not exist."""


__all__ = [
    "ConfigurationError",
    "DestinationExistsError",
    "OperationCancelledError",
    "OperationTimeoutError",
    "SafeIOError",
    "SourceNotFoundError",
]
