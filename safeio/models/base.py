"""Shared pydantic base for safeio's validated models."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class SafeIOBaseModel(BaseModel):
    """Base class for budgets and configuration models.

    Unknown fields are rejected, since a misspelled budget or logging option
    would otherwise silently fall back to a default. Assignments are
    re-validated so model invariants keep holding after construction.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dump of every field, suitable for structured log fields."""
        return self.model_dump(by_alias=True, mode="json")
