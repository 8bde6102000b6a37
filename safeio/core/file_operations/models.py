"""Models for file operation budgets, transactions and results."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import ConfigDict, Field, ValidationError, field_validator, model_validator

from safeio.core.errors import ConfigurationError
from safeio.models.base import SafeIOBaseModel

from .enums import TargetKind


TEMP_SUFFIX = ".tmp"


class OperationBudget(SafeIOBaseModel):
    """How long, how often and how many times an operation may retry.

    Durations are stored in seconds; ``timedelta`` values are accepted and
    converted. ``max_retries`` counts retries after the first attempt, so
    ``max_retries=0`` allows exactly one attempt.
    """

    model_config = ConfigDict(**SafeIOBaseModel.model_config, frozen=True)

    timeout: float = Field(ge=0, description="Overall time budget in seconds")
    retry_interval: float = Field(ge=0, description="Wait between attempts in seconds")
    max_retries: int | None = Field(
        default=None, ge=0, description="Optional cap on retries after the first attempt"
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid operation budget: {e}") from e

    @field_validator("timeout", "retry_interval", mode="before")
    @classmethod
    def convert_timedelta(cls, v: Any) -> Any:
        """Accept timedelta durations."""
        if isinstance(v, timedelta):
            return v.total_seconds()
        return v

    @model_validator(mode="after")
    def validate_timeout_covers_interval(self) -> "OperationBudget":
        """Timeout shorter than the retry interval can never be honoured."""
        if self.timeout < self.retry_interval:
            raise ValueError(
                f"timeout ({self.timeout}s) must be greater than or equal to "
                f"retry_interval ({self.retry_interval}s)"
            )
        return self

    @classmethod
    def from_seconds(
        cls,
        timeout: float | timedelta,
        retry_interval: float | timedelta,
        max_retries: int | None = None,
    ) -> "OperationBudget":
        """Build a budget from seconds or timedelta values."""
        return cls(timeout=timeout, retry_interval=retry_interval, max_retries=max_retries)

    @classmethod
    def from_milliseconds(
        cls,
        timeout_ms: int,
        retry_interval_ms: int,
        max_retries: int | None = None,
    ) -> "OperationBudget":
        """Build a budget from integer milliseconds.

        Raises:
            ConfigurationError: If either value is negative or not an integer
        """
        for name, value in (
            ("timeout_ms", timeout_ms),
            ("retry_interval_ms", retry_interval_ms),
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}")

        return cls(
            timeout=timeout_ms / 1000,
            retry_interval=retry_interval_ms / 1000,
            max_retries=max_retries,
        )

    @property
    def timeout_ms(self) -> int:
        """Timeout in whole milliseconds."""
        return round(self.timeout * 1000)

    @property
    def retry_interval_ms(self) -> int:
        """Retry interval in whole milliseconds."""
        return round(self.retry_interval * 1000)

    def describe(self) -> str:
        """Short human-readable form used in error messages."""
        text = f"timeout={self.timeout}s, retry_interval={self.retry_interval}s"
        if self.max_retries is not None:
            text += f", max_retries={self.max_retries}"
        return text


@dataclass(frozen=True)
class DeletionTarget:
    """A file or directory scheduled for confirmed removal."""

    path: Path
    kind: TargetKind
    budget: OperationBudget


@dataclass(frozen=True)
class CopyTransaction:
    """State of a single atomic file copy."""

    source: Path
    destination: Path
    overwrite: bool

    @property
    def temp_path(self) -> Path:
        """Sibling temporary file the content is staged in."""
        return self.destination.with_name(self.destination.name + TEMP_SUFFIX)


@dataclass
class OperationResult:
    """Outcome of a confirmed delete or copy."""

    path: Path
    attempts: int
    elapsed_time: float
    bytes_copied: int = 0
    destination: Path | None = None


@dataclass
class CopyProgress:
    """Progress information for directory copy operations."""

    files_processed: int
    total_files: int
    bytes_copied: int
    total_bytes: int
    current_file: str

    @property
    def file_progress_percent(self) -> float:
        """Calculate file progress percentage."""
        if self.total_files > 0:
            return (self.files_processed / self.total_files) * 100
        return 0.0

    @property
    def bytes_progress_percent(self) -> float:
        """Calculate bytes progress percentage."""
        if self.total_bytes > 0:
            return (self.bytes_copied / self.total_bytes) * 100
        return 0.0


# Type alias for progress callback
CopyProgressCallback = Callable[[CopyProgress], None]


@dataclass
class DirectoryCopyResult:
    """Result of a directory copy with throughput metrics."""

    source: Path
    destination: Path
    files_copied: int = 0
    directories_created: int = 0
    bytes_copied: int = 0
    elapsed_time: float = 0.0
    copied_files: list[Path] = field(default_factory=list)

    @property
    def speed_mbps(self) -> float:
        """Calculate copy speed in MB/s."""
        if self.elapsed_time > 0:
            return (self.bytes_copied / (1024 * 1024)) / self.elapsed_time
        return 0.0
