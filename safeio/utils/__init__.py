"""Utility functions for safeio."""

from .path_utils import (
    combine,
    combine_from_base,
    get_base_directory,
    get_full_path,
    get_relative_path,
    reset_base_directory,
    set_base_directory,
    web_combine,
)


__all__ = [
    "combine",
    "combine_from_base",
    "get_base_directory",
    "get_full_path",
    "get_relative_path",
    "reset_base_directory",
    "set_base_directory",
    "web_combine",
]
