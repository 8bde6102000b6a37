"""Models package for safeio."""

from .base import SafeIOBaseModel


__all__ = ["SafeIOBaseModel"]
