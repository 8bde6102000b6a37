"""Confirmed deletion of files and directories.

Each attempt issues the removal, swallowing any ``OSError`` (a held lock or
denied access only means "not yet"), and then verifies the result with an
existence probe. The retry policy decides whether and when to try again.
"""

import asyncio
import os
import shutil
from pathlib import Path

from safeio.core.errors import ConfigurationError, OperationTimeoutError

from .enums import DeletePhase, ProbeOutcome, TargetKind
from .models import DeletionTarget, OperationBudget, OperationResult
from .operation import RetryingOperation, RunOutcome, require_path
from .probe import probe_directory, probe_file
from .protocols import RetryPolicyProtocol


class DeleteConfirmer(RetryingOperation):
    """Delete files and directories and wait until the removal is confirmed."""

    def delete_file(
        self,
        path: str | os.PathLike[str],
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
    ) -> OperationResult:
        """Delete a file, blocking until its removal is confirmed.

        Args:
            path: File to delete; a missing file counts as already deleted
            budget: Timeout, retry interval and optional retry cap
            policy: Optional strategy replacing the built-in retry loop

        Returns:
            OperationResult with the number of attempts and elapsed time

        Raises:
            ConfigurationError: Empty path, invalid budget, or path is a directory
            OperationTimeoutError: The file was still present when the budget ran out
        """
        target = self._make_target(path, TargetKind.FILE, budget)
        retry_policy = self.resolve_policy(budget, policy)
        outcome = self.run(retry_policy, lambda: self._attempt(target))
        return self._finish(target, outcome)

    async def delete_file_async(
        self,
        path: str | os.PathLike[str],
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationResult:
        """Asynchronous form of ``delete_file``.

        Raises:
            OperationCancelledError: ``cancel_event`` was set before confirmation
        """
        target = self._make_target(path, TargetKind.FILE, budget)
        retry_policy = self.resolve_policy(budget, policy)

        async def attempt(event: asyncio.Event | None) -> bool:
            self.check_cancelled(event, target.path)
            return self._attempt(target)

        outcome = await self.run_async(retry_policy, attempt, cancel_event, target.path)
        return self._finish(target, outcome)

    def delete_directory(
        self,
        path: str | os.PathLike[str],
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
    ) -> OperationResult:
        """Recursively delete a directory, blocking until it no longer exists.

        Raises:
            ConfigurationError: Empty path, invalid budget, or path is a regular file
            OperationTimeoutError: The directory still existed when the budget ran out
        """
        target = self._make_target(path, TargetKind.DIRECTORY, budget)
        retry_policy = self.resolve_policy(budget, policy)
        outcome = self.run(retry_policy, lambda: self._attempt(target))
        return self._finish(target, outcome)

    async def delete_directory_async(
        self,
        path: str | os.PathLike[str],
        budget: OperationBudget,
        policy: RetryPolicyProtocol | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> OperationResult:
        """Asynchronous form of ``delete_directory``.

        The recursive removal runs in a worker thread so a large tree does not
        block the event loop.
        """
        target = self._make_target(path, TargetKind.DIRECTORY, budget)
        retry_policy = self.resolve_policy(budget, policy)

        async def attempt(event: asyncio.Event | None) -> bool:
            self.check_cancelled(event, target.path)
            confirmed = await asyncio.to_thread(self._attempt, target)
            self.check_cancelled(event, target.path)
            return confirmed

        outcome = await self.run_async(retry_policy, attempt, cancel_event, target.path)
        return self._finish(target, outcome)

    def _make_target(
        self, path: str | os.PathLike[str], kind: TargetKind, budget: OperationBudget
    ) -> DeletionTarget:
        target_path = require_path(path)
        if not isinstance(budget, OperationBudget):
            raise ConfigurationError(
                f"budget must be an OperationBudget, got {type(budget).__name__}"
            )

        is_real_dir = target_path.is_dir() and not target_path.is_symlink()
        if kind is TargetKind.FILE and is_real_dir:
            raise ConfigurationError(
                f"'{target_path}' is a directory, use delete_directory", path=target_path
            )
        if kind is TargetKind.DIRECTORY and target_path.is_file() and not target_path.is_symlink():
            raise ConfigurationError(
                f"'{target_path}' is a file, use delete_file", path=target_path
            )

        return DeletionTarget(path=target_path, kind=kind, budget=budget)

    def _attempt(self, target: DeletionTarget) -> bool:
        """Issue one removal and report whether it is confirmed."""
        if target.kind is TargetKind.FILE:
            self._remove_file(target.path)
            outcome = probe_file(target.path)
        else:
            if probe_directory(target.path) is ProbeOutcome.GONE:
                return True
            self._remove_directory(target.path)
            outcome = probe_directory(target.path)

        if outcome is not ProbeOutcome.GONE:
            self.logger.debug(
                "delete_not_confirmed",
                path=str(target.path),
                kind=target.kind.value,
                phase=DeletePhase.VERIFYING.value,
                probe=outcome.value,
            )
        return outcome is ProbeOutcome.GONE

    def _remove_file(self, path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.debug(
                "delete_attempt_failed",
                path=str(path),
                phase=DeletePhase.ATTEMPTING.value,
                error=str(e),
            )

    def _remove_directory(self, path: Path) -> None:
        try:
            if path.is_symlink():
                path.unlink()
            else:
                shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.debug(
                "delete_attempt_failed",
                path=str(path),
                phase=DeletePhase.ATTEMPTING.value,
                error=str(e),
            )

    def _finish(self, target: DeletionTarget, outcome: RunOutcome) -> OperationResult:
        if outcome.succeeded:
            self.logger.debug(
                "delete_confirmed",
                path=str(target.path),
                kind=target.kind.value,
                attempts=outcome.attempts,
                elapsed=round(outcome.elapsed, 3),
            )
            return OperationResult(
                path=target.path,
                attempts=outcome.attempts,
                elapsed_time=outcome.elapsed,
            )

        error = OperationTimeoutError(
            f"Timed out waiting for {target.kind.value} '{target.path}' to be deleted "
            f"after {outcome.elapsed:.2f}s and {outcome.attempts} attempt(s) "
            f"({target.budget.describe()})",
            path=target.path,
            budget=target.budget,
            attempts=outcome.attempts,
            elapsed=outcome.elapsed,
        )
        self.log_error_with_context("delete_timed_out", error, **error.to_context())
        raise error
