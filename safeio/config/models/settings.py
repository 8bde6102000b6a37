"""Process settings model."""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import LoggingConfig


class SafeIOSettings(BaseSettings):
    """Library defaults with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (``SAFEIO_*``)
    2. Constructor arguments
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="SAFEIO_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Return sources in priority order: env > init > dotenv > file_secret."""
        return (
            env_settings,
            init_settings,
            dotenv_settings,
            file_secret_settings,
        )

    default_timeout: float = Field(
        default=5.0,
        ge=0,
        description="Seconds an operation may keep retrying when no timeout is given",
    )
    default_retry_interval: float = Field(
        default=0.05,
        ge=0,
        description="Seconds between attempts when no retry interval is given",
    )
    default_max_retries: int | None = Field(
        default=None,
        ge=0,
        description="Retry cap applied when none is given (None means time-bound only)",
    )
    copy_buffer_size_kb: int = Field(
        default=1024, gt=0, description="Chunk size used when copying file content"
    )
    base_directory: Path | None = Field(
        default=None,
        description="Base directory for relative path resolution (None means cwd)",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("base_directory", mode="before")
    @classmethod
    def expand_base_directory(cls, v: Any) -> Path | None:
        """Expand and absolutize the base directory."""
        if v is None:
            return None
        if isinstance(v, str):
            if not v.strip():
                return None
            v = Path(v.strip())
        if isinstance(v, Path):
            return v.expanduser().absolute()
        raise ValueError("base_directory must be a path")

    @model_validator(mode="after")
    def validate_default_budget(self) -> "SafeIOSettings":
        """Default timeout must leave room for at least one retry interval."""
        if self.default_timeout < self.default_retry_interval:
            raise ValueError(
                "default_timeout must be greater than or equal to default_retry_interval"
            )
        return self
