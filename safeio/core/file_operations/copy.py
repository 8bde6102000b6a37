"""Atomic file copy through a temporary sibling file.

Content is staged in ``destination + ".tmp"`` and only then moved into
place, so the destination is never observed partially written. One attempt
runs the whole sequence (prepare, copy, normalize, finalize); a transient
``OSError`` anywhere in it makes the retry policy start over from the
beginning rather than resume.
"""

import asyncio
import contextlib
import errno
import os
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from safeio.core.errors import (
    ConfigurationError,
    DestinationExistsError,
    OperationTimeoutError,
    SafeIOError,
    SourceNotFoundError,
)

from .attributes import clear_readonly, is_same_volume
from .enums import CopyPhase
from .models import CopyTransaction, OperationBudget, OperationResult
from .operation import RetryingOperation, RunOutcome, require_path
from .protocols import RetryPolicyProtocol


# Filesystems without hard links report one of these from os.link
_LINK_UNSUPPORTED = frozenset(
    {errno.EPERM, errno.EOPNOTSUPP, errno.ENOTSUP, errno.ENOSYS, errno.EXDEV}
)


@dataclass
class _AttemptState:
    phase: CopyPhase = CopyPhase.PREPARING
    bytes_copied: int = 0


class AtomicCopier(RetryingOperation):
    """Copy single files with replace-via-temporary-file semantics."""

    def __init__(
        self,
        buffer_size_kb: int = 1024,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(sleep=sleep, clock=clock)
        if buffer_size_kb <= 0:
            raise ConfigurationError(f"buffer_size_kb must be positive, got {buffer_size_kb}")
        self.buffer_size = buffer_size_kb * 1024
        self.buffer_size_kb = buffer_size_kb

    def copy_file(
        self,
        source: str | os.PathLike[str],
        destination: str | os.PathLike[str],
        overwrite: bool,
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
    ) -> OperationResult:
        """Copy ``source`` to ``destination`` atomically, retrying transient failures.

        Args:
            source: Existing file to copy
            destination: Target file path; parent directories are created
            overwrite: Whether an existing destination may be replaced
            budget: Timeout, retry interval and optional retry cap
            policy: Optional strategy replacing the built-in retry loop

        Returns:
            OperationResult with attempts, elapsed time and bytes copied

        Raises:
            ConfigurationError: Empty paths, invalid budget, same source and
                destination, or destination is a directory
            SourceNotFoundError: Source file does not exist
            DestinationExistsError: Destination exists and overwrite is False
            OperationTimeoutError: Budget ran out before the copy completed
        """
        transaction = self._begin(source, destination, overwrite, budget)
        retry_policy = self.resolve_policy(budget, policy)
        state = _AttemptState()

        succeeded = False
        try:
            outcome = self.run(retry_policy, lambda: self._attempt(transaction, state))
            succeeded = outcome.succeeded
        finally:
            if not succeeded:
                self._discard_temp(transaction.temp_path)

        return self._finish(transaction, budget, outcome, state)

    async def copy_file_async(
        self,
        source: str | os.PathLike[str],
        destination: str | os.PathLike[str],
        overwrite: bool,
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationResult:
        """Asynchronous form of ``copy_file``.

        The byte transfer runs in a worker thread. Cancellation is checked
        before each attempt and right after the transfer, so a cancelled copy
        never reaches the finalize step and leaves the destination untouched.
        Task cancellation waits for a running transfer to return before the
        temp file is discarded.

        Raises:
            OperationCancelledError: ``cancel_event`` was set before completion
        """
        transaction = self._begin(source, destination, overwrite, budget)
        retry_policy = self.resolve_policy(budget, policy)
        state = _AttemptState()

        async def attempt(event: asyncio.Event | None) -> bool:
            self.check_cancelled(event, transaction.destination)
            try:
                state.bytes_copied = await self._stage_in_thread(transaction, state)
                self.check_cancelled(event, transaction.destination)
                self._commit(transaction, state)
            except OSError as e:
                return self._attempt_failed(transaction, state, e)
            return True

        succeeded = False
        try:
            outcome = await self.run_async(
                retry_policy, attempt, cancel_event, transaction.destination
            )
            succeeded = outcome.succeeded
        finally:
            if not succeeded:
                self._discard_temp(transaction.temp_path)

        return self._finish(transaction, budget, outcome, state)

    def _begin(
        self,
        source: str | os.PathLike[str],
        destination: str | os.PathLike[str],
        overwrite: bool,
        budget: OperationBudget,
    ) -> CopyTransaction:
        """Validate arguments and run the non-retried pre-checks."""
        source_path = require_path(source, "source")
        destination_path = require_path(destination, "destination")
        if not isinstance(budget, OperationBudget):
            raise ConfigurationError(
                f"budget must be an OperationBudget, got {type(budget).__name__}"
            )
        if source_path.absolute() == destination_path.absolute():
            raise ConfigurationError(
                f"source and destination are the same file: {source_path}",
                path=source_path,
            )

        if not source_path.is_file():
            raise SourceNotFoundError(
                f"Source file not found: {source_path}", path=source_path
            )
        if destination_path.is_dir():
            raise ConfigurationError(
                f"Destination is a directory: {destination_path}", path=destination_path
            )
        if not overwrite and os.path.lexists(destination_path):
            raise DestinationExistsError(
                f"Destination already exists: {destination_path}", path=destination_path
            )

        destination_path.parent.mkdir(parents=True, exist_ok=True)

        return CopyTransaction(
            source=source_path, destination=destination_path, overwrite=overwrite
        )

    def _attempt(self, transaction: CopyTransaction, state: _AttemptState) -> bool:
        """Run one full prepare/copy/normalize/finalize sequence."""
        try:
            state.bytes_copied = self._stage(transaction, state)
            self._commit(transaction, state)
        except OSError as e:
            return self._attempt_failed(transaction, state, e)
        return True

    async def _stage_in_thread(
        self, transaction: CopyTransaction, state: _AttemptState
    ) -> int:
        worker = asyncio.ensure_future(asyncio.to_thread(self._stage, transaction, state))
        try:
            return await asyncio.shield(worker)
        except asyncio.CancelledError:
            # The thread keeps writing the temp file until it returns
            with contextlib.suppress(Exception):
                await worker
            raise

    def _stage(self, transaction: CopyTransaction, state: _AttemptState) -> int:
        """Prepare the temp file and copy the source content into it."""
        state.phase = CopyPhase.PREPARING
        self._discard_temp(transaction.temp_path)

        state.phase = CopyPhase.COPYING
        return self._copy_content(transaction.source, transaction.temp_path)

    def _commit(self, transaction: CopyTransaction, state: _AttemptState) -> None:
        """Normalize attributes and move the temp file into place."""
        state.phase = CopyPhase.NORMALIZING
        clear_readonly(transaction.temp_path)
        destination_exists = os.path.lexists(transaction.destination)
        if destination_exists and not transaction.overwrite:
            # Appeared after the pre-check
            raise self._destination_exists(transaction)
        if destination_exists:
            clear_readonly(transaction.destination)

        state.phase = CopyPhase.FINALIZING
        if not transaction.overwrite:
            self._link_into_place(transaction)
        elif destination_exists and is_same_volume(
            transaction.temp_path, transaction.destination
        ):
            os.replace(transaction.temp_path, transaction.destination)
        else:
            shutil.move(str(transaction.temp_path), str(transaction.destination))

    def _link_into_place(self, transaction: CopyTransaction) -> None:
        """Publish the temp file without replacing a destination created meanwhile."""
        try:
            os.link(transaction.temp_path, transaction.destination)
        except FileExistsError as e:
            raise self._destination_exists(transaction) from e
        except OSError as e:
            if e.errno not in _LINK_UNSUPPORTED:
                raise
            self.logger.debug(
                "hard_link_unsupported",
                destination=str(transaction.destination),
                error=str(e),
            )
            shutil.move(str(transaction.temp_path), str(transaction.destination))
            return

        self._discard_temp(transaction.temp_path)

    @staticmethod
    def _destination_exists(transaction: CopyTransaction) -> DestinationExistsError:
        return DestinationExistsError(
            f"Destination already exists: {transaction.destination}",
            path=transaction.destination,
        )

    def _copy_content(self, source: Path, temp_path: Path) -> int:
        """Copy all bytes of ``source`` into ``temp_path`` with buffered I/O."""
        total_size = 0

        with source.open("rb") as fsrc, temp_path.open("wb") as fdst:
            while True:
                chunk = fsrc.read(self.buffer_size)
                if not chunk:
                    break
                fdst.write(chunk)
                total_size += len(chunk)

        # Timestamps and permissions are best effort
        try:
            shutil.copystat(source, temp_path)
        except OSError as e:
            self.logger.debug("copy_metadata_failed", path=str(temp_path), error=str(e))

        return total_size

    def _attempt_failed(
        self, transaction: CopyTransaction, state: _AttemptState, error: OSError
    ) -> bool:
        """Classify an attempt failure: re-raise permanent ones, else report False."""
        if isinstance(error, SafeIOError):
            raise error
        if isinstance(error, FileNotFoundError) and not transaction.source.is_file():
            raise SourceNotFoundError(
                f"Source file disappeared during copy: {transaction.source}",
                path=transaction.source,
            ) from error

        self.logger.debug(
            "copy_attempt_failed",
            source=str(transaction.source),
            destination=str(transaction.destination),
            phase=state.phase.value,
            error=str(error),
            error_type=error.__class__.__name__,
        )
        return False

    def _discard_temp(self, temp_path: Path) -> None:
        """Best-effort removal of a stale or abandoned temp file."""
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            clear_readonly(temp_path)
            try:
                temp_path.unlink()
            except OSError:
                self.logger.debug("temp_cleanup_failed", path=str(temp_path), error=str(e))

    def _finish(
        self,
        transaction: CopyTransaction,
        budget: OperationBudget,
        outcome: RunOutcome,
        state: _AttemptState,
    ) -> OperationResult:
        if outcome.succeeded:
            self.logger.debug(
                "copy_completed",
                source=str(transaction.source),
                destination=str(transaction.destination),
                bytes_copied=state.bytes_copied,
                attempts=outcome.attempts,
                elapsed=round(outcome.elapsed, 3),
            )
            return OperationResult(
                path=transaction.source,
                destination=transaction.destination,
                attempts=outcome.attempts,
                elapsed_time=outcome.elapsed,
                bytes_copied=state.bytes_copied,
            )

        error = OperationTimeoutError(
            f"Timed out copying '{transaction.source}' to '{transaction.destination}' "
            f"after {outcome.elapsed:.2f}s and {outcome.attempts} attempt(s) "
            f"(last phase: {state.phase.value}; {budget.describe()})",
            path=transaction.source,
            destination=transaction.destination,
            budget=budget,
            attempts=outcome.attempts,
            elapsed=outcome.elapsed,
        )
        self.log_error_with_context("copy_timed_out", error, **error.to_context())
        raise error
