"""Cancellable periodic ticker for the asynchronous retry loops."""

import asyncio


async def cancellable_sleep(delay: float, cancel_event: asyncio.Event | None) -> bool:
    """Suspend for ``delay`` seconds or until ``cancel_event`` is set.

    Returns:
        True when the full delay elapsed, False when cancellation won the race
    """
    if cancel_event is None:
        await asyncio.sleep(max(0.0, delay))
        return True

    if cancel_event.is_set():
        return False

    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=max(0.0, delay))
    except asyncio.TimeoutError:
        return True
    return False


class PeriodicTicker:
    """Fixed-cadence ticker anchored at its first use.

    Ticks fall on ``start + n * period``. When the caller is late for one or
    more ticks they coalesce into a single immediate tick, so slow attempts
    do not cause a burst of back-to-back retries.
    """

    def __init__(self, period: float) -> None:
        if period < 0:
            raise ValueError(f"period must not be negative, got {period}")
        self.period = period
        self._next_tick: float | None = None

    async def wait_for_next_tick(self, cancel_event: asyncio.Event | None = None) -> bool:
        """Wait for the next tick, racing it against ``cancel_event``.

        Returns:
            True on a tick, False if the cancellation signal fired first
        """
        loop = asyncio.get_running_loop()
        now = loop.time()

        if self.period == 0:
            return await cancellable_sleep(0.0, cancel_event)

        if self._next_tick is None:
            self._next_tick = now + self.period

        if now >= self._next_tick:
            # Missed ticks coalesce into one
            missed = int((now - self._next_tick) // self.period) + 1
            self._next_tick += missed * self.period
            return await cancellable_sleep(0.0, cancel_event)

        delay = self._next_tick - now
        self._next_tick += self.period
        return await cancellable_sleep(delay, cancel_event)
