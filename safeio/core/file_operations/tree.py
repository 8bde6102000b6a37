"""Directory tree copy built on the atomic file copier."""

import asyncio
import contextlib
import os
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from safeio.core.errors import ConfigurationError, OperationCancelledError, SourceNotFoundError
from safeio.core.structlog_logger import StructlogMixin

from .copy import AtomicCopier
from .models import (
    CopyProgress,
    CopyProgressCallback,
    DirectoryCopyResult,
    OperationBudget,
    OperationResult,
)
from .operation import require_path
from .protocols import RetryPolicyProtocol


@dataclass
class TreeListing:
    """Every sub-directory and file under a root, in walk order."""

    root: Path
    directories: list[Path] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)


def list_tree(root: Path) -> TreeListing:
    """Collect all sub-directories and files under ``root``.

    Entries are sorted per directory so the order is deterministic.
    Symlinked directories are listed but not descended into.
    """
    listing = TreeListing(root=root)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        base = Path(dirpath)
        listing.directories.extend(base / name for name in dirnames)
        listing.files.extend(base / name for name in sorted(filenames))
    return listing


def walk_tree(root: Path) -> Iterator[Path]:
    """Yield all sub-directory paths under ``root``, then all file paths."""
    listing = list_tree(root)
    yield from listing.directories
    yield from listing.files


class TreeOrchestrator(StructlogMixin):
    """Copy a directory tree entry by entry with a shared budget and policy.

    There is no rollback: when a file fails, files already copied stay at
    the destination.
    """

    def __init__(self, copier: AtomicCopier | None = None) -> None:
        super().__init__()
        self.copier = copier or AtomicCopier()

    def copy_directory(
        self,
        source_dir: str | os.PathLike[str],
        destination_dir: str | os.PathLike[str],
        overwrite: bool,
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
        progress_callback: CopyProgressCallback | None = None,
    ) -> DirectoryCopyResult:
        """Copy every sub-directory and file of ``source_dir`` into ``destination_dir``.

        Args:
            source_dir: Existing directory to copy
            destination_dir: Target directory, created if missing
            overwrite: Whether existing destination files may be replaced
            budget: Budget applied to each file copy
            policy: Optional retry policy applied to each file copy
            progress_callback: Called after each file with a CopyProgress

        Returns:
            DirectoryCopyResult with counts, bytes and elapsed time

        Raises:
            SourceNotFoundError: ``source_dir`` is not an existing directory
            DestinationExistsError: A destination file exists and overwrite is False
            OperationTimeoutError: A file copy exhausted its budget
        """
        start_time = time.monotonic()
        source, destination, listing = self._prepare(source_dir, destination_dir, budget)
        result = DirectoryCopyResult(source=source, destination=destination)
        total_bytes = self._total_size(listing)

        for directory in listing.directories:
            self._create_counterpart(listing, directory, destination, result)

        for file_path in listing.files:
            target = destination / file_path.relative_to(source)
            copied = self.copier.copy_file(file_path, target, overwrite, budget, policy)
            self._record(result, listing, copied, total_bytes, progress_callback)

        return self._finish(result, start_time)

    async def copy_directory_async(
        self,
        source_dir: str | os.PathLike[str],
        destination_dir: str | os.PathLike[str],
        overwrite: bool,
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
        progress_callback: CopyProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DirectoryCopyResult:
        """Asynchronous form of ``copy_directory``; cancellation is checked before each entry.

        Raises:
            OperationCancelledError: ``cancel_event`` was set before the walk finished
        """
        start_time = time.monotonic()
        source, destination, listing = self._prepare(source_dir, destination_dir, budget)
        result = DirectoryCopyResult(source=source, destination=destination)
        total_bytes = self._total_size(listing)

        for directory in listing.directories:
            self._check_cancelled(cancel_event, directory, result)
            self._create_counterpart(listing, directory, destination, result)

        for file_path in listing.files:
            self._check_cancelled(cancel_event, file_path, result)
            target = destination / file_path.relative_to(source)
            copied = await self.copier.copy_file_async(
                file_path, target, overwrite, budget, policy, cancel_event
            )
            self._record(result, listing, copied, total_bytes, progress_callback)

        return self._finish(result, start_time)

    def _prepare(
        self,
        source_dir: str | os.PathLike[str],
        destination_dir: str | os.PathLike[str],
        budget: OperationBudget,
    ) -> tuple[Path, Path, TreeListing]:
        source = require_path(source_dir, "source_dir")
        destination = require_path(destination_dir, "destination_dir")
        if not isinstance(budget, OperationBudget):
            raise ConfigurationError(
                f"budget must be an OperationBudget, got {type(budget).__name__}"
            )

        if not source.is_dir():
            raise SourceNotFoundError(
                f"Source directory not found: {source}", path=source
            )

        resolved_source = source.resolve()
        resolved_destination = destination.resolve()
        if resolved_destination == resolved_source or resolved_destination.is_relative_to(
            resolved_source
        ):
            raise ConfigurationError(
                f"Destination {destination} is inside source {source}", path=destination
            )

        listing = list_tree(source)
        destination.mkdir(parents=True, exist_ok=True)

        self.logger.debug(
            "directory_copy_started",
            source=str(source),
            destination=str(destination),
            directories=len(listing.directories),
            files=len(listing.files),
        )
        return source, destination, listing

    def _create_counterpart(
        self,
        listing: TreeListing,
        directory: Path,
        destination: Path,
        result: DirectoryCopyResult,
    ) -> None:
        (destination / directory.relative_to(listing.root)).mkdir(
            parents=True, exist_ok=True
        )
        result.directories_created += 1

    def _record(
        self,
        result: DirectoryCopyResult,
        listing: TreeListing,
        copied: OperationResult,
        total_bytes: int,
        progress_callback: CopyProgressCallback | None,
    ) -> None:
        result.files_copied += 1
        result.bytes_copied += copied.bytes_copied
        if copied.destination is not None:
            result.copied_files.append(copied.destination)

        if progress_callback:
            progress_callback(
                CopyProgress(
                    files_processed=result.files_copied,
                    total_files=len(listing.files),
                    bytes_copied=result.bytes_copied,
                    total_bytes=total_bytes,
                    current_file=str(copied.path.relative_to(listing.root)),
                )
            )

    def _check_cancelled(
        self,
        cancel_event: asyncio.Event | None,
        entry: Path,
        result: DirectoryCopyResult,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.logger.debug(
                "directory_copy_cancelled",
                source=str(result.source),
                next_entry=str(entry),
                files_copied=result.files_copied,
            )
            raise OperationCancelledError(
                f"Copy of '{result.source}' was cancelled before '{entry}'",
                path=result.source,
            )

    def _total_size(self, listing: TreeListing) -> int:
        total = 0
        for file_path in listing.files:
            with contextlib.suppress(OSError):
                total += file_path.stat().st_size
        return total

    def _finish(self, result: DirectoryCopyResult, start_time: float) -> DirectoryCopyResult:
        result.elapsed_time = time.monotonic() - start_time
        self.logger.debug(
            "directory_copy_completed",
            source=str(result.source),
            destination=str(result.destination),
            files=result.files_copied,
            directories=result.directories_created,
            size_mb=round(result.bytes_copied / (1024 * 1024), 2),
            elapsed=round(result.elapsed_time, 3),
        )
        return result
