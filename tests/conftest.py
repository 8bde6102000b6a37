"""Core test fixtures for the safeio project."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from safeio.config.settings import reset_settings
from safeio.core.file_operations import OperationBudget
from safeio.utils.path_utils import reset_base_directory


# ---- Test Isolation Fixtures ----


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Reset process-wide state and hide SAFEIO_* variables for every test.

    Settings and the base directory are cached per process, so a test that
    changes either would otherwise leak into the next one.
    """
    for key in list(os.environ):
        if key.startswith("SAFEIO_"):
            monkeypatch.delenv(key, raising=False)

    reset_settings()
    reset_base_directory()

    yield

    reset_settings()
    reset_base_directory()


# ---- Budget Fixtures ----


@pytest.fixture
def budget() -> OperationBudget:
    """Generous budget for operations that are expected to succeed."""
    return OperationBudget(timeout=5.0, retry_interval=0.05)


@pytest.fixture
def short_budget() -> OperationBudget:
    """Short budget for operations that are expected to time out."""
    return OperationBudget(timeout=0.3, retry_interval=0.02)


# ---- File System Fixtures ----


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """Create a small source file containing ``hello``."""
    path = tmp_path / "src.txt"
    path.write_text("hello")
    return path


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Create a nested source directory tree.

    Layout::

        src/
            root.txt        "root"
            a/
                b/
                    file.txt    "content"
            empty/
    """
    src = tmp_path / "src"
    (src / "a" / "b").mkdir(parents=True)
    (src / "empty").mkdir()
    (src / "root.txt").write_text("root")
    (src / "a" / "b" / "file.txt").write_text("content")
    return src
