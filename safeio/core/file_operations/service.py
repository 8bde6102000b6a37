"""File operations service combining deletion, atomic copy and tree copy."""

import asyncio
import os
from datetime import timedelta

from safeio.config.models.settings import SafeIOSettings
from safeio.config.settings import get_settings
from safeio.core.errors import ConfigurationError
from safeio.core.structlog_logger import StructlogMixin

from .copy import AtomicCopier
from .delete import DeleteConfirmer
from .models import (
    CopyProgressCallback,
    DirectoryCopyResult,
    OperationBudget,
    OperationResult,
)
from .protocols import RetryPolicyProtocol
from .tree import TreeOrchestrator


Duration = float | timedelta
PathArg = str | os.PathLike[str]


class SafeFileService(StructlogMixin):
    """Entry point for race-tolerant delete and copy operations.

    Every operation takes either explicit ``timeout``/``retry_interval``/
    ``max_retries`` values (missing ones fall back to the service defaults)
    or a prebuilt ``budget``, never both.
    """

    def __init__(
        self,
        default_budget: OperationBudget | None = None,
        buffer_size_kb: int = 1024,
    ):
        """Initialize the service.

        Args:
            default_budget: Budget used for values the caller leaves out
            buffer_size_kb: Chunk size for copying file content
        """
        super().__init__()
        self.default_budget = default_budget or OperationBudget(
            timeout=5.0, retry_interval=0.05
        )
        self.buffer_size_kb = buffer_size_kb
        self.confirmer = DeleteConfirmer()
        self.copier = AtomicCopier(buffer_size_kb=buffer_size_kb)
        self.orchestrator = TreeOrchestrator(self.copier)

    def resolve_budget(
        self,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
    ) -> OperationBudget:
        """Build the budget for one call.

        Raises:
            ConfigurationError: Both forms given, or the resulting budget is invalid
        """
        if budget is not None:
            if any(v is not None for v in (timeout, retry_interval, max_retries)):
                raise ConfigurationError(
                    "Pass either budget or timeout/retry_interval/max_retries, not both"
                )
            if not isinstance(budget, OperationBudget):
                raise ConfigurationError(
                    f"budget must be an OperationBudget, got {type(budget).__name__}"
                )
            return budget

        defaults = self.default_budget
        return OperationBudget(
            timeout=defaults.timeout if timeout is None else timeout,
            retry_interval=(
                defaults.retry_interval if retry_interval is None else retry_interval
            ),
            max_retries=defaults.max_retries if max_retries is None else max_retries,
        )

    def delete_file(
        self,
        path: PathArg,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
    ) -> OperationResult:
        """Delete a file and wait until the removal is confirmed."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return self.confirmer.delete_file(path, resolved, policy)

    async def delete_file_async(
        self,
        path: PathArg,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationResult:
        """Asynchronous form of ``delete_file``."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return await self.confirmer.delete_file_async(path, resolved, policy, cancel_event)

    def delete_directory(
        self,
        path: PathArg,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
    ) -> OperationResult:
        """Recursively delete a directory and wait until it no longer exists."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return self.confirmer.delete_directory(path, resolved, policy)

    async def delete_directory_async(
        self,
        path: PathArg,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationResult:
        """Asynchronous form of ``delete_directory``."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return await self.confirmer.delete_directory_async(
            path, resolved, policy, cancel_event
        )

    def copy_file(
        self,
        source: PathArg,
        destination: PathArg,
        overwrite: bool = False,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
    ) -> OperationResult:
        """Copy a file through a temporary sibling and move it into place."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return self.copier.copy_file(source, destination, overwrite, resolved, policy)

    async def copy_file_async(
        self,
        source: PathArg,
        destination: PathArg,
        overwrite: bool = False,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationResult:
        """Asynchronous form of ``copy_file``."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return await self.copier.copy_file_async(
            source, destination, overwrite, resolved, policy, cancel_event
        )

    def copy_directory(
        self,
        source_dir: PathArg,
        destination_dir: PathArg,
        overwrite: bool = False,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
        progress_callback: CopyProgressCallback | None = None,
    ) -> DirectoryCopyResult:
        """Copy a directory tree, each file with the same budget and policy."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return self.orchestrator.copy_directory(
            source_dir, destination_dir, overwrite, resolved, policy, progress_callback
        )

    async def copy_directory_async(
        self,
        source_dir: PathArg,
        destination_dir: PathArg,
        overwrite: bool = False,
        timeout: Duration | None = None,
        retry_interval: Duration | None = None,
        *,
        max_retries: int | None = None,
        budget: OperationBudget | None = None,
        policy: RetryPolicyProtocol | None = None,
        progress_callback: CopyProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DirectoryCopyResult:
        """Asynchronous form of ``copy_directory``."""
        resolved = self.resolve_budget(timeout, retry_interval, max_retries, budget)
        return await self.orchestrator.copy_directory_async(
            source_dir,
            destination_dir,
            overwrite,
            resolved,
            policy,
            progress_callback,
            cancel_event,
        )


def create_file_service(settings: SafeIOSettings | None = None) -> SafeFileService:
    """Factory function to create the file service from settings.

    Args:
        settings: Settings to read defaults from; the process settings when None

    Returns:
        Configured SafeFileService instance
    """
    if settings is None:
        settings = get_settings()

    default_budget = OperationBudget(
        timeout=settings.default_timeout,
        retry_interval=settings.default_retry_interval,
        max_retries=settings.default_max_retries,
    )
    return SafeFileService(
        default_budget=default_budget,
        buffer_size_kb=settings.copy_buffer_size_kb,
    )
