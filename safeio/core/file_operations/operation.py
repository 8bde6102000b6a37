"""Shared plumbing for operations driven by a retry policy."""

import asyncio
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from safeio.core.errors import ConfigurationError, OperationCancelledError
from safeio.core.structlog_logger import StructlogMixin

from .models import OperationBudget
from .protocols import AsyncAttempt, Attempt, RetryPolicyProtocol
from .retry import DeadlineRetryPolicy


@dataclass
class RunOutcome:
    """What a policy run reported, plus the bookkeeping around it."""

    succeeded: bool
    attempts: int
    elapsed: float


def require_path(value: str | os.PathLike[str] | None, name: str = "path") -> Path:
    """Convert ``value`` to a Path, rejecting empty and blank values."""
    if value is None:
        raise ConfigurationError(f"{name} must not be None")
    text = os.fspath(value)
    if not text.strip():
        raise ConfigurationError(f"{name} must not be empty")
    return Path(text)


class RetryingOperation(StructlogMixin):
    """Base class for operations that repeat an attempt under a retry policy."""

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__()
        self._sleep = sleep
        self._clock = clock

    def resolve_policy(
        self, budget: OperationBudget, policy: RetryPolicyProtocol | None
    ) -> RetryPolicyProtocol:
        """Return the injected policy, or the built-in deadline loop for ``budget``."""
        if not isinstance(budget, OperationBudget):
            raise ConfigurationError(
                f"budget must be an OperationBudget, got {type(budget).__name__}"
            )
        if policy is None:
            return DeadlineRetryPolicy(budget, sleep=self._sleep, clock=self._clock)
        if not isinstance(policy, RetryPolicyProtocol):
            raise ConfigurationError(
                f"policy must implement execute/execute_async, got {type(policy).__name__}"
            )
        return policy

    def run(self, policy: RetryPolicyProtocol, attempt: Attempt) -> RunOutcome:
        """Drive ``attempt`` with ``policy``, counting attempts and elapsed time."""
        attempts = 0

        def counted() -> bool:
            nonlocal attempts
            attempts += 1
            return attempt()

        started = self._clock()
        succeeded = policy.execute(counted)
        return RunOutcome(succeeded, attempts, self._clock() - started)

    async def run_async(
        self,
        policy: RetryPolicyProtocol,
        attempt: AsyncAttempt,
        cancel_event: asyncio.Event | None,
        path: Path,
    ) -> RunOutcome:
        """Asynchronous form of ``run``; cancellation is re-raised naming ``path``."""
        attempts = 0

        async def counted(event: asyncio.Event | None) -> bool:
            nonlocal attempts
            attempts += 1
            return await attempt(event)

        started = self._clock()
        try:
            succeeded = await policy.execute_async(counted, cancel_event)
        except OperationCancelledError as e:
            if e.path is not None:
                raise
            self.logger.debug("operation_cancelled", path=str(path), attempts=attempts)
            raise OperationCancelledError(
                f"Operation on '{path}' was cancelled after {attempts} attempt(s)",
                path=path,
            ) from e
        return RunOutcome(succeeded, attempts, self._clock() - started)

    @staticmethod
    def check_cancelled(cancel_event: asyncio.Event | None, path: Path) -> None:
        """Raise ``OperationCancelledError`` naming ``path`` if the signal fired."""
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(
                f"Operation on '{path}' was cancelled", path=path
            )
