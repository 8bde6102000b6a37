"""Protocol definitions for pluggable retry strategies."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable


# One synchronous attempt: True once confirmed, False to ask for another round
Attempt = Callable[[], bool]

# One asynchronous attempt, receiving the caller's cancellation signal
AsyncAttempt = Callable[[asyncio.Event | None], Awaitable[bool]]


@runtime_checkable
class RetryPolicyProtocol(Protocol):
    """Protocol for strategies that drive an attempt until success or exhaustion.

    A policy owns its own timing and stopping condition. Exceptions raised by
    the attempt are not caught: transient failures are reported by the
    attempt returning False.
    """

    def execute(self, attempt: Attempt) -> bool:
        """Run ``attempt`` until it returns True or the policy gives up.

        Args:
            attempt: Side-effecting probe returning True on confirmed success

        Returns:
            True if some attempt succeeded, False once the policy is exhausted
        """
        ...

    async def execute_async(
        self, attempt: AsyncAttempt, cancel_event: asyncio.Event | None = None
    ) -> bool:
        """Asynchronous form of ``execute``.

        Args:
            attempt: Coroutine function returning True on confirmed success
            cancel_event: Optional signal; once set the policy must stop

        Returns:
            True if some attempt succeeded, False once the policy is exhausted

        Raises:
            OperationCancelledError: If ``cancel_event`` is set before success
        """
        ...
