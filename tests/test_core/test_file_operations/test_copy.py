"""Tests for atomic file copy through a temporary sibling."""

import asyncio
import errno
import os
import stat
import time

import pytest

from safeio.core.errors import (
    ConfigurationError,
    DestinationExistsError,
    OperationCancelledError,
    OperationTimeoutError,
    SourceNotFoundError,
)
from safeio.core.file_operations import copy as copy_module
from safeio.core.file_operations.copy import AtomicCopier
from safeio.core.file_operations.models import OperationBudget
from safeio.core.file_operations.retry import FixedRetryPolicy


@pytest.fixture
def copier():
    """Create an atomic copier with a small buffer."""
    return AtomicCopier(buffer_size_kb=1)


def temp_of(path):
    return path.with_name(path.name + ".tmp")


class TestCopyFile:
    """Test AtomicCopier.copy_file."""

    def test_copy_to_new_destination(self, copier, source_file, tmp_path):
        """Test "hello" is copied to a fresh destination with no temp file left."""
        destination = tmp_path / "dst.txt"
        budget = OperationBudget.from_milliseconds(5000, 50)

        result = copier.copy_file(source_file, destination, False, budget)

        assert destination.read_text() == "hello"
        assert not temp_of(destination).exists()
        assert result.bytes_copied == 5
        assert result.attempts == 1
        assert result.destination == destination

    def test_overwrite_replaces_content(self, copier, tmp_path, budget):
        """Test overwrite=True yields byte-identical content."""
        source = tmp_path / "src.bin"
        payload = os.urandom(5000)
        source.write_bytes(payload)
        destination = tmp_path / "dst.bin"
        destination.write_bytes(b"old content")

        copier.copy_file(source, destination, True, budget)

        assert destination.read_bytes() == payload
        assert not temp_of(destination).exists()

    def test_existing_destination_without_overwrite(
        self, copier, source_file, tmp_path, budget
    ):
        """Test overwrite=False with an existing destination leaves it unchanged."""
        destination = tmp_path / "dst.txt"
        destination.write_text("keep me")

        with pytest.raises(DestinationExistsError) as exc_info:
            copier.copy_file(source_file, destination, False, budget)

        assert destination.read_text() == "keep me"
        assert exc_info.value.path == destination
        assert isinstance(exc_info.value, FileExistsError)

    def test_missing_source(self, copier, tmp_path, budget):
        """Test a missing source raises SourceNotFoundError."""
        with pytest.raises(SourceNotFoundError):
            copier.copy_file(tmp_path / "missing", tmp_path / "dst", False, budget)

    def test_creates_parent_directories(self, copier, source_file, tmp_path, budget):
        """Test missing destination parents are created."""
        destination = tmp_path / "a" / "b" / "dst.txt"

        copier.copy_file(source_file, destination, False, budget)

        assert destination.read_text() == "hello"

    def test_same_source_and_destination(self, copier, source_file, budget):
        """Test copying a file onto itself is rejected."""
        with pytest.raises(ConfigurationError, match="same file"):
            copier.copy_file(source_file, source_file, True, budget)

    def test_destination_is_directory(self, copier, source_file, tmp_path, budget):
        """Test a directory destination is rejected."""
        target = tmp_path / "dir"
        target.mkdir()

        with pytest.raises(ConfigurationError, match="is a directory"):
            copier.copy_file(source_file, target, True, budget)

    def test_stale_temp_file_is_replaced(self, copier, source_file, tmp_path, budget):
        """Test a leftover temp file from an earlier run does not leak into the copy."""
        destination = tmp_path / "dst.txt"
        temp_of(destination).write_text("stale partial content")

        copier.copy_file(source_file, destination, False, budget)

        assert destination.read_text() == "hello"
        assert not temp_of(destination).exists()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    def test_readonly_destination_replaced(self, copier, source_file, tmp_path, budget):
        """Test a read-only destination is normalised and replaced."""
        destination = tmp_path / "dst.txt"
        destination.write_text("old")
        os.chmod(destination, stat.S_IREAD)

        copier.copy_file(source_file, destination, True, budget)

        assert destination.read_text() == "hello"

    def test_transient_failure_is_retried(
        self, copier, source_file, tmp_path, budget, monkeypatch
    ):
        """Test a replace that fails transiently succeeds on a later attempt."""
        destination = tmp_path / "dst.txt"
        destination.write_text("old")
        real_replace = os.replace
        calls = []

        def flaky_replace(src, dst):
            calls.append(dst)
            if len(calls) < 3:
                raise PermissionError(13, "Sharing violation", str(dst))
            return real_replace(src, dst)

        monkeypatch.setattr(copy_module.os, "replace", flaky_replace)

        result = copier.copy_file(source_file, destination, True, budget)

        assert destination.read_text() == "hello"
        assert result.attempts == 3
        assert not temp_of(destination).exists()

    def test_timeout_cleans_up_temp(
        self, copier, source_file, tmp_path, short_budget, monkeypatch
    ):
        """Test a copy that never finalizes times out with no temp file and dst unchanged."""
        destination = tmp_path / "dst.txt"
        destination.write_text("old")

        def locked_replace(src, dst):
            raise PermissionError(13, "Sharing violation", str(dst))

        monkeypatch.setattr(copy_module.os, "replace", locked_replace)

        with pytest.raises(OperationTimeoutError) as exc_info:
            copier.copy_file(source_file, destination, True, short_budget)

        assert destination.read_text() == "old"
        assert not temp_of(destination).exists()
        assert exc_info.value.path == source_file
        assert exc_info.value.destination == destination

    def test_max_retries_on_copy(
        self, copier, source_file, tmp_path, monkeypatch
    ):
        """Test max_retries bounds the number of copy attempts."""
        destination = tmp_path / "dst.txt"
        destination.write_text("old")
        calls = []

        def locked_replace(src, dst):
            calls.append(dst)
            raise PermissionError(13, "Sharing violation", str(dst))

        monkeypatch.setattr(copy_module.os, "replace", locked_replace)
        budget = OperationBudget(timeout=60.0, retry_interval=0.01, max_retries=1)

        with pytest.raises(OperationTimeoutError) as exc_info:
            copier.copy_file(source_file, destination, True, budget)

        assert exc_info.value.attempts == 2
        assert len(calls) == 2

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    def test_destination_appearing_during_copy(
        self, copier, source_file, tmp_path, budget, monkeypatch
    ):
        """Test a destination created after the pre-check is neither overwritten nor modified."""
        destination = tmp_path / "dst.txt"
        real_copy_content = copier._copy_content

        def racing_copy(source, temp_path):
            copied = real_copy_content(source, temp_path)
            destination.write_text("someone else")
            os.chmod(destination, 0o444)
            return copied

        monkeypatch.setattr(copier, "_copy_content", racing_copy)

        with pytest.raises(DestinationExistsError):
            copier.copy_file(source_file, destination, False, budget)

        assert destination.read_text() == "someone else"
        assert stat.S_IMODE(os.stat(destination).st_mode) == 0o444
        assert not temp_of(destination).exists()

    def test_destination_appearing_before_publish(
        self, copier, source_file, tmp_path, budget, monkeypatch
    ):
        """Test a destination created just before the final link is not replaced."""
        destination = tmp_path / "dst.txt"
        real_link = os.link

        def racing_link(src, dst):
            destination.write_text("someone else")
            return real_link(src, dst)

        monkeypatch.setattr(copy_module.os, "link", racing_link)

        with pytest.raises(DestinationExistsError):
            copier.copy_file(source_file, destination, False, budget)

        assert destination.read_text() == "someone else"
        assert not temp_of(destination).exists()

    def test_filesystem_without_hard_links(
        self, copier, source_file, tmp_path, budget, monkeypatch
    ):
        """Test a fresh copy still completes when hard links are not supported."""
        destination = tmp_path / "dst.txt"

        def no_link(src, dst):
            raise OSError(errno.EPERM, "Operation not permitted", str(dst))

        monkeypatch.setattr(copy_module.os, "link", no_link)

        result = copier.copy_file(source_file, destination, False, budget)

        assert destination.read_text() == "hello"
        assert result.attempts == 1
        assert not temp_of(destination).exists()

    def test_injected_policy(self, copier, source_file, tmp_path, budget, monkeypatch):
        """Test an injected policy controls copy attempts."""
        destination = tmp_path / "dst.txt"
        destination.write_text("old")

        def locked_replace(src, dst):
            raise PermissionError(13, "Sharing violation", str(dst))

        monkeypatch.setattr(copy_module.os, "replace", locked_replace)

        with pytest.raises(OperationTimeoutError) as exc_info:
            copier.copy_file(
                source_file, destination, True, budget, FixedRetryPolicy(1, 0.0)
            )

        assert exc_info.value.attempts == 2

    def test_invalid_buffer_size(self):
        """Test a non-positive buffer size is rejected."""
        with pytest.raises(ConfigurationError):
            AtomicCopier(buffer_size_kb=0)


class TestCopyFileAsync:
    """Test AtomicCopier.copy_file_async."""

    @pytest.mark.asyncio
    async def test_copy(self, copier, source_file, tmp_path, budget):
        """Test async copy produces identical content."""
        destination = tmp_path / "dst.txt"

        result = await copier.copy_file_async(source_file, destination, False, budget)

        assert destination.read_text() == "hello"
        assert result.bytes_copied == 5
        assert not temp_of(destination).exists()

    @pytest.mark.asyncio
    async def test_cancellation_leaves_destination_untouched(
        self, copier, source_file, tmp_path, monkeypatch
    ):
        """Test cancelling an in-flight copy raises OperationCancelledError and keeps dst."""
        destination = tmp_path / "dst.txt"
        destination.write_text("old")

        def locked_replace(src, dst):
            raise PermissionError(13, "Sharing violation", str(dst))

        monkeypatch.setattr(copy_module.os, "replace", locked_replace)
        budget = OperationBudget(timeout=10.0, retry_interval=0.05)
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.1, event.set)

        with pytest.raises(OperationCancelledError):
            await copier.copy_file_async(
                source_file, destination, True, budget, cancel_event=event
            )

        assert destination.read_text() == "old"
        assert not temp_of(destination).exists()

    @pytest.mark.asyncio
    async def test_existing_destination(self, copier, source_file, tmp_path, budget):
        """Test async copy honours overwrite=False."""
        destination = tmp_path / "dst.txt"
        destination.write_text("keep")

        with pytest.raises(DestinationExistsError):
            await copier.copy_file_async(source_file, destination, False, budget)

        assert destination.read_text() == "keep"

    @pytest.mark.asyncio
    async def test_task_cancellation_removes_temp(
        self, copier, source_file, tmp_path, budget, monkeypatch
    ):
        """Test cancelling the task mid-transfer leaves no temp file and no destination."""
        destination = tmp_path / "dst.txt"
        real_copy_content = copier._copy_content

        def slow_copy(source, temp_path):
            time.sleep(0.3)
            return real_copy_content(source, temp_path)

        monkeypatch.setattr(copier, "_copy_content", slow_copy)

        task = asyncio.create_task(
            copier.copy_file_async(source_file, destination, False, budget)
        )
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert not temp_of(destination).exists()
        assert not destination.exists()
