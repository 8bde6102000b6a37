"""Retry policy implementations.

``DeadlineRetryPolicy`` is the built-in loop every operation falls back to
when the caller injects nothing. The other policies are ready-made
alternatives that satisfy the same ``RetryPolicyProtocol``.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

import tenacity

from safeio.core.errors import ConfigurationError, OperationCancelledError
from safeio.core.structlog_logger import get_struct_logger

from .models import OperationBudget
from .protocols import AsyncAttempt, Attempt
from .ticker import PeriodicTicker, cancellable_sleep


logger = get_struct_logger(__name__)


def raise_if_cancelled(cancel_event: asyncio.Event | None) -> None:
    """Raise ``OperationCancelledError`` when the signal has fired."""
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelledError("Operation was cancelled")


class DeadlineRetryPolicy:
    """Retry until the budget's timeout elapses or its retry cap is reached.

    After each failed attempt the policy stops when the elapsed time has
    reached ``budget.timeout`` or, when ``budget.max_retries`` is set, when
    that many retries have already been spent. Otherwise it waits
    ``budget.retry_interval``: a blocking sleep in ``execute`` and a periodic
    ticker raced against the cancellation signal in ``execute_async``.
    """

    def __init__(
        self,
        budget: OperationBudget,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.budget = budget
        self._sleep = sleep
        self._clock = clock

    def _exhausted(self, started: float, retries: int) -> bool:
        elapsed = self._clock() - started
        if elapsed >= self.budget.timeout:
            logger.debug(
                "retry_deadline_reached",
                elapsed=round(elapsed, 3),
                timeout=self.budget.timeout,
                retries=retries,
            )
            return True
        if self.budget.max_retries is not None and retries >= self.budget.max_retries:
            logger.debug(
                "retry_limit_reached",
                retries=retries,
                max_retries=self.budget.max_retries,
            )
            return True
        return False

    def execute(self, attempt: Attempt) -> bool:
        started = self._clock()
        retries = 0

        while True:
            if attempt():
                return True
            if self._exhausted(started, retries):
                return False
            retries += 1
            self._sleep(self.budget.retry_interval)

    async def execute_async(
        self, attempt: AsyncAttempt, cancel_event: asyncio.Event | None = None
    ) -> bool:
        started = self._clock()
        retries = 0
        ticker = PeriodicTicker(self.budget.retry_interval)

        while True:
            raise_if_cancelled(cancel_event)
            if await attempt(cancel_event):
                return True
            if self._exhausted(started, retries):
                return False
            retries += 1
            if not await ticker.wait_for_next_tick(cancel_event):
                raise OperationCancelledError("Operation was cancelled while waiting")


class FixedRetryPolicy:
    """Up to ``max_retries + 1`` attempts separated by a constant delay."""

    def __init__(
        self,
        max_retries: int,
        delay: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ConfigurationError(f"max_retries must not be negative, got {max_retries}")
        if delay < 0:
            raise ConfigurationError(f"delay must not be negative, got {delay}")
        self.max_retries = max_retries
        self.delay = delay
        self._sleep = sleep

    def execute(self, attempt: Attempt) -> bool:
        for i in range(self.max_retries + 1):
            if attempt():
                return True
            if i < self.max_retries:
                self._sleep(self.delay)
        return False

    async def execute_async(
        self, attempt: AsyncAttempt, cancel_event: asyncio.Event | None = None
    ) -> bool:
        for i in range(self.max_retries + 1):
            raise_if_cancelled(cancel_event)
            if await attempt(cancel_event):
                return True
            if i < self.max_retries and not await cancellable_sleep(
                self.delay, cancel_event
            ):
                raise OperationCancelledError("Operation was cancelled while waiting")
        return False


class ExponentialBackoffRetryPolicy:
    """Attempts separated by exponentially growing, optionally jittered delays.

    A thin adapter over tenacity. The delay after failed attempt ``n``
    (1-based) is ``min(initial_delay * multiplier ** (n - 1), max_delay)``
    plus a uniformly random extra of up to ``jitter`` seconds. An attempt
    returning False is retried; an attempt raising propagates unchanged.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        initial_delay: float = 0.05,
        multiplier: float = 2.0,
        max_delay: float = 2.0,
        jitter: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {max_attempts}")
        if initial_delay < 0 or max_delay < 0:
            raise ConfigurationError("delays must not be negative")
        if multiplier < 1.0:
            raise ConfigurationError(f"multiplier must be >= 1.0, got {multiplier}")
        if jitter < 0:
            raise ConfigurationError(f"jitter must not be negative, got {jitter}")
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.jitter = jitter
        self._sleep = sleep

    def _wait(self) -> tenacity.wait.wait_base:
        wait: tenacity.wait.wait_base = tenacity.wait_exponential(
            multiplier=self.initial_delay, exp_base=self.multiplier, max=self.max_delay
        )
        if self.jitter:
            wait = wait + tenacity.wait_random(0, self.jitter)
        return wait

    def _retryer_options(self) -> dict[str, Any]:
        return {
            "stop": tenacity.stop_after_attempt(self.max_attempts),
            "wait": self._wait(),
            "retry": tenacity.retry_if_result(lambda ok: not ok),
            "retry_error_callback": lambda retry_state: False,
            "before_sleep": _log_backoff,
        }

    def execute(self, attempt: Attempt) -> bool:
        retryer = tenacity.Retrying(sleep=self._sleep, **self._retryer_options())
        return bool(retryer(attempt))

    async def execute_async(
        self, attempt: AsyncAttempt, cancel_event: asyncio.Event | None = None
    ) -> bool:
        async def guarded() -> bool:
            raise_if_cancelled(cancel_event)
            return await attempt(cancel_event)

        async def sleep(seconds: float) -> None:
            if not await cancellable_sleep(seconds, cancel_event):
                raise OperationCancelledError("Operation was cancelled while waiting")

        retryer = tenacity.AsyncRetrying(sleep=sleep, **self._retryer_options())
        return bool(await retryer(guarded))


def _log_backoff(retry_state: tenacity.RetryCallState) -> None:
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.debug("retry_backoff", attempt=retry_state.attempt_number, delay=round(delay, 3))
