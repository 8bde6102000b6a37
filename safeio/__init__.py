"""SafeIO - race-tolerant file deletion and atomic copying."""

import asyncio
import os
from datetime import timedelta
from importlib.metadata import distribution

from .core.errors import (
    ConfigurationError,
    DestinationExistsError,
    OperationCancelledError,
    OperationTimeoutError,
    SafeIOError,
    SourceNotFoundError,
)
from .core.file_operations import (
    CopyProgress,
    CopyProgressCallback,
    DeadlineRetryPolicy,
    DirectoryCopyResult,
    ExponentialBackoffRetryPolicy,
    FixedRetryPolicy,
    OperationBudget,
    OperationResult,
    RetryPolicyProtocol,
    SafeFileService,
    create_file_service,
    walk_tree,
)


__version__ = distribution(__package__ or "safeio").version

Duration = float | timedelta
PathArg = str | os.PathLike[str]


def delete_file(
    path: PathArg,
    timeout: Duration | None = None,
    retry_interval: Duration | None = None,
    *,
    max_retries: int | None = None,
    budget: OperationBudget | None = None,
    policy: RetryPolicyProtocol | None = None,
) -> OperationResult:
    """Delete a file and block until the removal is confirmed.

    Args:
        path: File to delete; a missing file counts as deleted
        timeout: Seconds (or timedelta) to keep retrying
        retry_interval: Pause between attempts
        max_retries: Retries allowed after the first attempt
        budget: Prebuilt budget instead of the three values above
        policy: Retry policy replacing the built-in deadline loop

    Raises:
        ConfigurationError: Invalid arguments
        OperationTimeoutError: The file still exists when the budget runs out
    """
    return create_file_service().delete_file(
        path,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
    )


async def delete_file_async(
    path: PathArg,
    timeout: Duration | None = None,
    retry_interval: Duration | None = None,
    *,
    max_retries: int | None = None,
    budget: OperationBudget | None = None,
    policy: RetryPolicyProtocol | None = None,
    cancel_event: asyncio.Event | None = None,
) -> OperationResult:
    """Asynchronous form of ``delete_file``; setting ``cancel_event`` cancels it."""
    return await create_file_service().delete_file_async(
        path,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
        cancel_event=cancel_event,
    )


def delete_directory(
    path: PathArg,
    timeout: Duration | None = None,
    retry_interval: Duration | None = None,
    *,
    max_retries: int | None = None,
    budget: OperationBudget | None = None,
    policy: RetryPolicyProtocol | None = None,
) -> OperationResult:
    """Recursively delete a directory and block until it no longer exists."""
    return create_file_service().delete_directory(
        path,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
    )


async def delete_directory_async(
    path: PathArg,
    timeout: Duration | None = None,
    retry_interval: Duration | None = None,
    *,
    max_retries: int | None = None,
    budget: OperationBudget | None = None,
    policy: RetryPolicyProtocol | None = None,
    cancel_event: asyncio.Event | None = None,
) -> OperationResult:
    """Asynchronous form of ``delete_directory``; setting ``cancel_event`` cancels it."""
    return await create_file_service().delete_directory_async(
        path,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
        cancel_event=cancel_event,
    )


def copy_file(
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
    """Copy ``source`` to ``destination`` through a ``.tmp`` sibling.

    The destination is either left untouched or replaced by the complete
    copy; a partially written destination is never visible.

    Raises:
        ConfigurationError: Invalid arguments
        SourceNotFoundError: The source file does not exist
        DestinationExistsError: The destination exists and ``overwrite`` is False
        OperationTimeoutError: The copy did not complete within the budget
    """
    return create_file_service().copy_file(
        source,
        destination,
        overwrite,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
    )


async def copy_file_async(
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
    """Asynchronous form of ``copy_file``; setting ``cancel_event`` cancels it."""
    return await create_file_service().copy_file_async(
        source,
        destination,
        overwrite,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
        cancel_event=cancel_event,
    )


def copy_directory(
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
    """Copy a directory tree; every file goes through ``copy_file``.

    Files copied before a failure are left in place.
    """
    return create_file_service().copy_directory(
        source_dir,
        destination_dir,
        overwrite,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
        progress_callback=progress_callback,
    )


async def copy_directory_async(
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
    """Asynchronous form of ``copy_directory``; setting ``cancel_event`` cancels it."""
    return await create_file_service().copy_directory_async(
        source_dir,
        destination_dir,
        overwrite,
        timeout,
        retry_interval,
        max_retries=max_retries,
        budget=budget,
        policy=policy,
        progress_callback=progress_callback,
        cancel_event=cancel_event,
    )


__all__ = [
    "ConfigurationError",
    "CopyProgress",
    "DeadlineRetryPolicy",
    "DestinationExistsError",
    "DirectoryCopyResult",
    "ExponentialBackoffRetryPolicy",
    "FixedRetryPolicy",
    "OperationBudget",
    "OperationCancelledError",
    "OperationResult",
    "OperationTimeoutError",
    "RetryPolicyProtocol",
    "SafeFileService",
    "SafeIOError",
    "SourceNotFoundError",
    "__version__",
    "copy_directory",
    "copy_directory_async",
    "copy_file",
    "copy_file_async",
    "create_file_service",
    "delete_directory",
    "delete_directory_async",
    "delete_file",
    "delete_file_async",
    "walk_tree",
]
