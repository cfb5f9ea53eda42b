"""Progress tracking for simulated long-running sync operations.

``ProgressSyncSimulator`` keeps a set of named operations and pushes a full
snapshot to every subscriber whenever one of them changes. It is a plain
object: construct one and pass it to whatever needs it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from joidu_focus.models.focus.scheduler import AsyncioScheduler, ScheduledHandle, Scheduler

logger = logging.getLogger(__name__)

REMOVAL_DELAY = 1.0  # seconds a completed operation stays visible
TICK_MS = 50


@dataclass
class SyncOperation:
    operation_id: str
    name: str
    progress: float = 0.0
    is_complete: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "name": self.name,
            "progress": self.progress,
            "is_complete": self.is_complete,
            "error": self.error,
        }


@dataclass(frozen=True)
class SyncScenario:
    duration_ms: int
    message: str


SYNC_SCENARIOS: dict[str, SyncScenario] = {
    "initial_load": SyncScenario(3000, "Setting up your workspace..."),
    "manual_sync": SyncScenario(2500, "Syncing your latest changes..."),
    "login_sync": SyncScenario(4000, "Loading your account data..."),
    "settings_sync": SyncScenario(1500, "Saving your preferences..."),
    "backup_sync": SyncScenario(5000, "Creating backup of your data..."),
}

Subscriber = Callable[[list[SyncOperation]], None]


class ProgressSyncSimulator:
    """Tracks named operations and notifies subscribers on every change."""

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        *,
        removal_delay: float = REMOVAL_DELAY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.scheduler = scheduler
        self.removal_delay = removal_delay
        self._clock = clock
        self._operations: dict[str, SyncOperation] = {}
        self._subscribers: list[Subscriber] = []
        # operation id -> (deadline, handle) for completed operations. The
        # deadline is None when the injected scheduler owns the removal.
        self._removals: dict[str, tuple[float | None, ScheduledHandle | None]] = {}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def start(self, operation_id: str, name: str) -> None:
        """Create (or reset) an operation at 0%."""
        self._cancel_removal(operation_id)
        self._operations[operation_id] = SyncOperation(operation_id, name)
        logger.debug("Sync operation %s started: %s", operation_id, name)
        self._notify()

    def update_progress(self, operation_id: str, progress: float) -> None:
        operation = self._operations.get(operation_id)
        if operation is None:
            return
        operation.progress = min(100.0, max(0.0, progress))
        operation.is_complete = operation.progress >= 100
        self._notify()

    def complete(self, operation_id: str) -> None:
        """Mark an operation finished and drop it after the grace delay."""
        operation = self._operations.get(operation_id)
        if operation is None:
            return
        operation.progress = 100.0
        operation.is_complete = True
        logger.debug("Sync operation %s complete", operation_id)
        self._notify()
        self._schedule_removal(operation_id)

    def fail(self, operation_id: str, error_message: str) -> None:
        """Attach an error. Progress and completion are left as they are."""
        operation = self._operations.get(operation_id)
        if operation is None:
            return
        operation.error = error_message
        logger.warning("Sync operation %s failed: %s", operation_id, error_message)
        self._notify()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def active_operations(self) -> list[SyncOperation]:
        """Snapshot of every tracked operation."""
        self.prune()
        return [replace(op) for op in self._operations.values()]

    def get(self, operation_id: str) -> SyncOperation | None:
        self.prune()
        operation = self._operations.get(operation_id)
        return replace(operation) if operation is not None else None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def prune(self) -> int:
        """Drop completed operations whose grace delay has passed.

        Only covers removals made without an injected scheduler: those with no
        event loop, or whose loop has already gone away. An injected scheduler
        is the only clock for its own removals. Returns the number of
        operations removed.
        """
        now = self._clock()
        expired = [
            op_id
            for op_id, (deadline, _) in self._removals.items()
            if deadline is not None and deadline <= now
        ]
        for op_id in expired:
            self._cancel_removal(op_id)
            self._remove(op_id, notify=False)
        if expired:
            self._notify()
        return len(expired)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _schedule_removal(self, operation_id: str) -> None:
        self._cancel_removal(operation_id)

        def remove() -> None:
            self._remove(operation_id)

        if self.scheduler is not None:
            handle = self.scheduler.schedule_once(self.removal_delay, remove)
            self._removals[operation_id] = (None, handle)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            handle = None
        else:
            handle = AsyncioScheduler(loop).schedule_once(self.removal_delay, remove)
        self._removals[operation_id] = (self._clock() + self.removal_delay, handle)

    def _cancel_removal(self, operation_id: str) -> None:
        entry = self._removals.pop(operation_id, None)
        if entry is not None and entry[1] is not None:
            entry[1].cancel()

    def _remove(self, operation_id: str, notify: bool = True) -> None:
        self._removals.pop(operation_id, None)
        if self._operations.pop(operation_id, None) is not None and notify:
            self._notify()

    def _notify(self) -> None:
        operations = [replace(op) for op in self._operations.values()]
        for subscriber in list(self._subscribers):
            try:
                subscriber(operations)
            except Exception:
                # One failing subscriber must not starve the others
                logger.exception("Sync subscriber %r raised", subscriber)


async def simulate_sync(
    simulator: ProgressSyncSimulator,
    operation_id: str,
    name: str,
    duration_ms: int = 3000,
    on_progress: Callable[[float], None] | None = None,
    *,
    tick_ms: int = TICK_MS,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Drive one operation from 0 to 100% over ``duration_ms``.

    Returns once the operation has been marked complete.
    """
    simulator.start(operation_id, name)
    started = clock()

    while True:
        await sleep(tick_ms / 1000)
        elapsed_ms = (clock() - started) * 1000
        if duration_ms <= 0:
            progress = 100.0
        else:
            progress = min(100.0, elapsed_ms / duration_ms * 100)

        simulator.update_progress(operation_id, progress)
        if on_progress is not None:
            on_progress(progress)

        if progress >= 100:
            simulator.complete(operation_id)
            return
