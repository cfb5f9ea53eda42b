"""Scheduling primitives used by the focus timer and the sync simulator.

Both implementations are single-threaded: callbacks run one at a time on the
caller's event loop (``AsyncioScheduler``) or inside ``advance``
(``ManualScheduler``).
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class ScheduledHandle(Protocol):
    """Handle returned by a scheduler; cancelling it twice is harmless."""

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Something that can run callbacks later."""

    def schedule_repeating(
        self, interval_seconds: float, callback: Callable[[], None]
    ) -> ScheduledHandle:
        """Call ``callback`` every ``interval_seconds`` until cancelled."""
        ...

    def schedule_once(
        self, delay_seconds: float, callback: Callable[[], None]
    ) -> ScheduledHandle:
        """Call ``callback`` once after ``delay_seconds`` unless cancelled."""
        ...


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------


class _AsyncioHandle:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback, repeat: bool):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._repeat = repeat
        self._cancelled = False
        self._timer: asyncio.TimerHandle | None = None
        self._next_at = loop.time() + interval
        self._arm()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _arm(self) -> None:
        self._timer = self._loop.call_at(self._next_at, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        if self._repeat:
            # Anchor on the previous deadline so the interval does not drift
            self._next_at += self._interval
            self._arm()
        else:
            self._cancelled = True
        self._callback()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_repeating(self, interval_seconds: float, callback: Callable[[], None]) -> _AsyncioHandle:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        return _AsyncioHandle(self.loop, interval_seconds, callback, repeat=True)

    def schedule_once(self, delay_seconds: float, callback: Callable[[], None]) -> _AsyncioHandle:
        return _AsyncioHandle(self.loop, max(0.0, delay_seconds), callback, repeat=False)


# ---------------------------------------------------------------------------
# Virtual clock
# ---------------------------------------------------------------------------


class _ManualHandle:
    def __init__(self, interval: float | None):
        self.interval = interval
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ManualScheduler:
    """Scheduler driven by an explicit virtual clock.

    Nothing runs until ``advance`` is called. Callbacks due at the same instant
    fire in the order they were scheduled.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._queue: list[tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def _push(self, when: float, handle: _ManualHandle, callback: Callable[[], None]) -> None:
        heapq.heappush(self._queue, (when, next(self._seq), handle, callback))

    def schedule_repeating(self, interval_seconds: float, callback: Callable[[], None]) -> _ManualHandle:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        handle = _ManualHandle(interval_seconds)
        self._push(self.now + interval_seconds, handle, callback)
        return handle

    def schedule_once(self, delay_seconds: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(None)
        self._push(self.now + max(0.0, delay_seconds), handle, callback)
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every callback that becomes due.

        Returns the number of callbacks that ran.
        """
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = when
            if handle.interval is not None:
                self._push(when + handle.interval, handle, callback)
            else:
                handle.cancel()
            callback()
            fired += 1
        self.now = target
        return fired

    def pending(self) -> int:
        """Number of live (not cancelled) scheduled callbacks."""
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)
