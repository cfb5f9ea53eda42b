"""Focus timer engine: drives the timer reducer from a scheduler."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .scheduler import ScheduledHandle, Scheduler
from .session import FocusSession
from .snapshot import SnapshotStore
from .timer import (
    INITIAL_STATE,
    CancelSession,
    CompleteSession,
    EndBreak,
    Pause,
    Resume,
    StartBreak,
    StartSession,
    Tick,
    TimerEvent,
    TimerPhase,
    TimerState,
    format_time,
    progress,
    timer_reducer,
)

if TYPE_CHECKING:
    from .history import SessionHistory

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "focus-session"

TimerListener = Callable[[TimerPhase, TimerState], None]


class FocusTimerEngine:
    """Owns a ``TimerState`` and the timers that move it forward.

    The engine keeps at most one repeating tick handle, alive only while the
    timer is ticking, and one auto-save handle, alive only while a session is
    active. Both are released on every path out of those conditions.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        store: SnapshotStore | None = None,
        *,
        tick_interval: float = 1.0,
        autosave_interval: float = 30.0,
        snapshot_key: str = SNAPSHOT_KEY,
        history: SessionHistory | None = None,
    ):
        self.scheduler = scheduler
        self.store = store
        self.tick_interval = tick_interval
        self.autosave_interval = autosave_interval
        self.snapshot_key = snapshot_key
        self.history = history

        self._state: TimerState = INITIAL_STATE
        self._listeners: list[TimerListener] = []

        self._tick_handle: ScheduledHandle | None = None
        self._autosave_handle: ScheduledHandle | None = None
        # Bumped whenever a handle is released; callbacks from an older
        # generation are dropped.
        self._tick_generation = 0
        self._autosave_generation = 0

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def phase(self) -> TimerPhase:
        return self._state.phase

    @property
    def time_display(self) -> str:
        return format_time(self._state.time_remaining)

    @staticmethod
    def format_time(seconds: int) -> str:
        return format_time(seconds)

    def progress(self) -> float:
        return progress(self._state)

    def subscribe(self, listener: TimerListener) -> Callable[[], None]:
        """Register a listener called with (phase, state) after each transition."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Host operations
    # ------------------------------------------------------------------

    def start_timer(self, session: FocusSession) -> TimerState:
        """Start counting down a new session."""
        if self._dispatch(StartSession(session)):
            logger.info(
                "Focus session %s started: %r for %d min",
                session.session_id,
                session.task_title,
                session.duration_minutes,
            )
            self._check_zero()
        return self._state

    def pause_timer(self) -> TimerState:
        self._dispatch(Pause())
        return self._state

    def resume_timer(self) -> TimerState:
        self._dispatch(Resume())
        return self._state

    def start_break(self, duration_minutes: int, break_type: str = "manual") -> TimerState:
        """Replace the focus countdown with a break countdown."""
        if self._dispatch(StartBreak(duration_minutes, break_type)):
            logger.info("Break started: %d min (%s)", duration_minutes, break_type)
            self._check_zero()
        return self._state

    def end_break(self) -> TimerState:
        """Stop the break countdown. The focus countdown is not resumed."""
        if self._dispatch(EndBreak()):
            logger.info("Break ended")
        return self._state

    def cancel_timer(self) -> FocusSession | None:
        """Abandon the current session and clear its snapshot.

        Returns a copy of the cancelled session, if there was one.
        """
        previous = self._state
        self._state = timer_reducer(self._state, CancelSession())
        self._release_tick()
        self._release_autosave()

        if self.store is not None:
            self.store.remove(self.snapshot_key)

        session = previous.current_session
        if session is None:
            return None

        session = session.copy()
        logger.info("Focus session %s cancelled", session.session_id)
        if self.history is not None and not session.is_completed:
            self.history.record(
                session, status="cancelled", time_remaining=previous.time_remaining
            )
        self._notify("cancelled")
        return session

    def close(self) -> None:
        """Release scheduled callbacks without changing the state."""
        self._release_tick()
        self._release_autosave()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any] | None:
        """JSON-safe copy of the current session and remaining time."""
        session = self._state.current_session
        if session is None:
            return None
        data = session.to_dict()
        data["time_remaining"] = self._state.time_remaining
        data["saved_at"] = datetime.now().astimezone().isoformat()
        return data

    def save_snapshot(self) -> bool:
        """Write the current snapshot to the store."""
        data = self.snapshot()
        if self.store is None or data is None:
            return False
        self.store.set(self.snapshot_key, data)
        logger.debug("Snapshot saved (%ss remaining)", data["time_remaining"])
        return True

    def restore(self, snapshot: dict[str, Any]) -> bool:
        """Load a snapshot into an idle engine, leaving it paused.

        The host decides whether to resume. Returns False if the engine is busy
        or the snapshot is unusable.
        """
        if self._state.phase not in ("idle", "completed"):
            return False

        try:
            data = dict(snapshot)
            time_remaining = int(data.pop("time_remaining"))
            data.pop("saved_at", None)
            session = FocusSession.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring invalid focus snapshot: %s", e)
            return False

        if session.is_completed:
            return False

        self._state = TimerState(
            time_remaining=max(0, min(time_remaining, session.total_seconds)),
            is_active=False,
            is_paused=True,
            session_id=session.session_id,
            current_session=session,
        )
        logger.info("Focus session %s restored", session.session_id)
        self._notify(self._state.phase)
        return True

    def load_snapshot(self) -> bool:
        """Restore from the store, if a snapshot exists."""
        if self.store is None:
            return False
        data = self.store.get(self.snapshot_key)
        if not data:
            return False
        return self.restore(data)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _dispatch(self, event: TimerEvent) -> bool:
        new_state = timer_reducer(self._state, event)
        if new_state is self._state:
            logger.debug("Ignored %s in phase %s", type(event).__name__, self.phase)
            return False

        self._state = new_state
        self._sync_handles()
        self._notify(self._state.phase)
        return True

    def _sync_handles(self) -> None:
        state = self._state

        if state.is_ticking and self._tick_handle is None:
            generation = self._tick_generation
            self._tick_handle = self.scheduler.schedule_repeating(
                self.tick_interval, lambda: self._on_tick(generation)
            )
        elif not state.is_ticking:
            self._release_tick()

        saving = state.current_session is not None and state.is_active
        if saving and self._autosave_handle is None and self.store is not None:
            generation = self._autosave_generation
            self._autosave_handle = self.scheduler.schedule_repeating(
                self.autosave_interval, lambda: self._on_autosave(generation)
            )
        elif not saving:
            self._release_autosave()

    def _release_tick(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        self._tick_generation += 1

    def _release_autosave(self) -> None:
        if self._autosave_handle is not None:
            self._autosave_handle.cancel()
            self._autosave_handle = None
        self._autosave_generation += 1

    def _on_tick(self, generation: int) -> None:
        if generation != self._tick_generation:
            return
        self._dispatch(Tick())
        self._check_zero()

    def _on_autosave(self, generation: int) -> None:
        if generation != self._autosave_generation:
            return
        if self._state.current_session is None or not self._state.is_active:
            return
        self.save_snapshot()

    def _check_zero(self) -> None:
        """Handle a countdown that has run out while active."""
        state = self._state
        if state.time_remaining != 0 or not state.is_active:
            return

        if state.on_break:
            self.end_break()
            return

        if self._dispatch(CompleteSession()):
            session = self._state.current_session
            logger.info("Focus session %s completed", self._state.session_id)
            if self.store is not None:
                self.store.remove(self.snapshot_key)
            if self.history is not None and session is not None:
                self.history.record(session.copy(), status="completed")

    def _notify(self, phase: TimerPhase) -> None:
        for listener in list(self._listeners):
            try:
                listener(phase, self._state)
            except Exception:
                logger.exception("Timer listener %r failed", listener)
