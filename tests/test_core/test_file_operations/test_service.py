"""Tests for the file operations service and module-level API."""

from datetime import timedelta

import pytest

import safeio
from safeio.config.models.settings import SafeIOSettings
from safeio.config.settings import set_settings
from safeio.core.errors import ConfigurationError, OperationTimeoutError
from safeio.core.file_operations import delete
from safeio.core.file_operations.models import OperationBudget
from safeio.core.file_operations.retry import FixedRetryPolicy
from safeio.core.file_operations.service import SafeFileService, create_file_service


class TestSafeFileService:
    """Test SafeFileService functionality."""

    def test_service_initialization_with_defaults(self):
        """Test service initialization with default parameters."""
        service = SafeFileService()

        assert service.default_budget.timeout == 5.0
        assert service.default_budget.retry_interval == 0.05
        assert service.buffer_size_kb == 1024
        assert service.copier.buffer_size == 1024 * 1024
        assert service.orchestrator.copier is service.copier

    def test_resolve_budget_uses_defaults(self):
        """Test omitted values come from the default budget."""
        service = SafeFileService(
            default_budget=OperationBudget(timeout=2.0, retry_interval=0.1, max_retries=4)
        )

        resolved = service.resolve_budget(timeout=timedelta(seconds=1))

        assert resolved.timeout == 1.0
        assert resolved.retry_interval == 0.1
        assert resolved.max_retries == 4

    def test_resolve_budget_passes_budget_through(self):
        """Test an explicit budget is used as-is."""
        service = SafeFileService()
        budget = OperationBudget.from_milliseconds(100, 10)

        assert service.resolve_budget(budget=budget) is budget

    def test_resolve_budget_rejects_both_forms(self):
        """Test passing a budget and explicit values raises ConfigurationError."""
        service = SafeFileService()

        with pytest.raises(ConfigurationError, match="not both"):
            service.resolve_budget(timeout=1.0, budget=OperationBudget.from_milliseconds(100, 10))

    def test_resolve_budget_validates(self):
        """Test timeout < retry_interval raises before any I/O."""
        service = SafeFileService()

        with pytest.raises(ConfigurationError):
            service.resolve_budget(timeout=0.01, retry_interval=1.0)

    def test_invalid_timeout_touches_nothing(self, tmp_path):
        """Test a bad budget leaves the file system untouched."""
        service = SafeFileService()
        path = tmp_path / "file.txt"
        path.write_text("data")

        with pytest.raises(ConfigurationError):
            service.delete_file(path, timeout=0.01, retry_interval=1.0)

        assert path.exists()

    def test_delete_and_copy_round(self, tmp_path):
        """Test copying then deleting through the service."""
        service = SafeFileService()
        source = tmp_path / "src.txt"
        source.write_text("hello")
        destination = tmp_path / "out" / "dst.txt"

        copied = service.copy_file(source, destination)
        deleted = service.delete_file(destination)

        assert copied.bytes_copied == 5
        assert deleted.path == destination
        assert not destination.exists()

    def test_copy_and_delete_directory(self, source_tree, tmp_path):
        """Test tree copy and recursive delete through the service."""
        service = SafeFileService()
        dst = tmp_path / "dst"

        result = service.copy_directory(source_tree, dst, True, 5.0, 0.05)
        service.delete_directory(dst, budget=OperationBudget.from_milliseconds(5000, 50))

        assert result.files_copied == 2
        assert not dst.exists()

    def test_policy_and_max_retries_forwarded(self, tmp_path, monkeypatch):
        """Test keyword-only options reach the confirmer."""
        path = tmp_path / "locked.txt"
        path.write_text("locked")
        removes = []

        def locked_remove(target, *args, **kwargs):
            removes.append(target)
            raise PermissionError("locked")

        monkeypatch.setattr(delete.os, "remove", locked_remove)
        service = SafeFileService()

        with pytest.raises(OperationTimeoutError):
            service.delete_file(path, 60.0, 0.01, max_retries=2)
        assert len(removes) == 3

        removes.clear()
        with pytest.raises(OperationTimeoutError):
            service.delete_file(path, policy=FixedRetryPolicy(0, 0.0))
        assert len(removes) == 1

    @pytest.mark.asyncio
    async def test_async_operations(self, source_tree, tmp_path):
        """Test the async forms delegate correctly."""
        service = SafeFileService()
        dst = tmp_path / "dst"

        await service.copy_directory_async(source_tree, dst)
        await service.copy_file_async(dst / "root.txt", dst / "copy.txt")
        await service.delete_file_async(dst / "copy.txt")
        await service.delete_directory_async(dst)

        assert not dst.exists()


class TestCreateFileService:
    """Test the create_file_service factory."""

    def test_factory_uses_settings(self):
        """Test the factory reads defaults from settings."""
        settings = SafeIOSettings(
            default_timeout=3.0,
            default_retry_interval=0.2,
            default_max_retries=7,
            copy_buffer_size_kb=64,
        )

        service = create_file_service(settings)

        assert service.default_budget.timeout == 3.0
        assert service.default_budget.retry_interval == 0.2
        assert service.default_budget.max_retries == 7
        assert service.buffer_size_kb == 64

    def test_factory_uses_process_settings(self):
        """Test the factory falls back to the cached process settings."""
        set_settings(SafeIOSettings(default_timeout=9.0))

        service = create_file_service()

        assert service.default_budget.timeout == 9.0

    def test_factory_reads_environment(self, monkeypatch):
        """Test SAFEIO_* environment variables drive the defaults."""
        monkeypatch.setenv("SAFEIO_DEFAULT_TIMEOUT", "1.5")
        monkeypatch.setenv("SAFEIO_DEFAULT_MAX_RETRIES", "2")

        service = create_file_service()

        assert service.default_budget.timeout == 1.5
        assert service.default_budget.max_retries == 2


class TestModuleLevelApi:
    """Test the functions exported from the safeio package."""

    def test_copy_file_hello_scenario(self, tmp_path):
        """Test "hello" copy with 5 s / 50 ms to a fresh destination."""
        source = tmp_path / "src.txt"
        source.write_text("hello")
        destination = tmp_path / "dst.txt"

        result = safeio.copy_file(source, destination, False, 5.0, 0.05)

        assert destination.read_text() == "hello"
        assert not (tmp_path / "dst.txt.tmp").exists()
        assert result.attempts == 1

    def test_copy_directory_scenario(self, tmp_path):
        """Test src/a/b/file.txt tree copy through the package API."""
        src = tmp_path / "src"
        (src / "a" / "b").mkdir(parents=True)
        (src / "a" / "b" / "file.txt").write_text("content")
        dst = tmp_path / "dst"

        safeio.copy_directory(src, dst, True, timedelta(seconds=5), timedelta(milliseconds=50))

        assert (dst / "a" / "b" / "file.txt").read_text() == "content"

    def test_delete_missing_paths(self, tmp_path):
        """Test deleting missing files and directories succeeds immediately."""
        assert safeio.delete_file(tmp_path / "nope.txt").attempts == 1
        assert safeio.delete_directory(tmp_path / "nope").attempts == 1

    def test_both_budget_forms_rejected(self, tmp_path):
        """Test budget= plus an explicit timeout raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            safeio.delete_file(
                tmp_path / "x",
                1.0,
                budget=OperationBudget.from_milliseconds(1000, 10),
            )

    @pytest.mark.asyncio
    async def test_async_api(self, tmp_path):
        """Test the async package functions."""
        source = tmp_path / "src.txt"
        source.write_text("hello")
        destination = tmp_path / "dst.txt"

        await safeio.copy_file_async(source, destination)
        await safeio.delete_file_async(source)

        assert destination.read_text() == "hello"
        assert not source.exists()

    def test_version_exported(self):
        """Test the package exposes its version."""
        assert isinstance(safeio.__version__, str)

    @pytest.mark.parametrize(
        "name",
        [
            "delete_file",
            "delete_file_async",
            "delete_directory",
            "delete_directory_async",
            "copy_file",
            "copy_file_async",
            "copy_directory",
            "copy_directory_async",
        ],
    )
    def test_public_operations_documented(self, name):
        """Test every module-level operation carries a docstring."""
        assert getattr(safeio, name).__doc__
