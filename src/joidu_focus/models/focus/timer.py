"""Focus timer state and its pure transition function.

The timer is modelled as an immutable ``TimerState`` plus a set of event
types. ``timer_reducer`` maps ``(state, event)`` to the next state and never
raises: events that do not apply to the current phase return the state
unchanged.
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Union

from .session import Break, BreakType, FocusSession

TimerPhase = Literal["idle", "running", "paused", "on_break", "completed", "cancelled"]


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class TimerState:
    """Live timer state."""

    time_remaining: int = 0  # seconds
    is_active: bool = False
    is_paused: bool = False
    session_id: str | None = None
    current_session: FocusSession | None = None
    on_break: bool = False
    break_started_at: datetime | None = None
    break_type: BreakType = "manual"

    @property
    def phase(self) -> TimerPhase:
        """Derive the machine phase from the state fields.

        A cancelled timer is indistinguishable from a fresh one, so this never
        returns "cancelled"; the engine reports that phase to its listeners.
        """
        if self.current_session is None:
            return "idle"
        if self.current_session.is_completed:
            return "completed"
        if self.on_break and self.is_active:
            return "on_break"
        if self.is_active and not self.is_paused:
            return "running"
        return "paused"

    @property
    def is_ticking(self) -> bool:
        return self.is_active and not self.is_paused


INITIAL_STATE = TimerState()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StartSession:
    session: FocusSession


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class CompleteSession:
    completed_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class CancelSession:
    pass


@dataclass(frozen=True)
class StartBreak:
    duration_minutes: int
    break_type: BreakType = "manual"
    started_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class EndBreak:
    ended_at: datetime = field(default_factory=_now)


TimerEvent = Union[
    StartSession, Tick, Pause, Resume, CompleteSession, CancelSession, StartBreak, EndBreak
]


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


def _start_session(state: TimerState, event: StartSession) -> TimerState:
    if state.phase not in ("idle", "completed"):
        return state
    session = event.session.copy()
    return TimerState(
        time_remaining=max(0, session.duration_minutes * 60),
        is_active=True,
        is_paused=False,
        session_id=session.session_id,
        current_session=session,
    )


def _tick(state: TimerState) -> TimerState:
    if not state.is_active or state.is_paused:
        return state
    return dataclasses.replace(state, time_remaining=max(0, state.time_remaining - 1))


def _pause(state: TimerState) -> TimerState:
    if state.phase != "running":
        return state
    return dataclasses.replace(state, is_paused=True, is_active=False)


def _resume(state: TimerState) -> TimerState:
    if state.phase != "paused":
        return state
    return dataclasses.replace(state, is_paused=False, is_active=True)


def _complete(state: TimerState, event: CompleteSession) -> TimerState:
    session = state.current_session
    if session is None or session.is_completed or state.on_break or not state.is_active:
        return state

    session = session.copy()
    elapsed = session.total_seconds - state.time_remaining
    session.is_completed = True
    session.end_time = event.completed_at
    session.stats.end_time = event.completed_at
    session.stats.focus_minutes = max(0, elapsed) // 60

    return dataclasses.replace(
        state,
        is_active=False,
        is_paused=False,
        time_remaining=0,
        current_session=session,
    )


def _start_break(state: TimerState, event: StartBreak) -> TimerState:
    if state.phase != "running" or event.duration_minutes < 0:
        return state
    # The break countdown replaces the focus countdown; remaining focus time
    # is not kept.
    return dataclasses.replace(
        state,
        time_remaining=event.duration_minutes * 60,
        is_active=True,
        is_paused=False,
        on_break=True,
        break_started_at=event.started_at,
        break_type=event.break_type,
    )


def _end_break(state: TimerState, event: EndBreak) -> TimerState:
    if not state.on_break:
        return state

    session = state.current_session
    if session is not None and state.break_started_at is not None:
        session = session.copy()
        taken = max(0, int((event.ended_at - state.break_started_at).total_seconds()))
        session.breaks.append(
            Break(
                break_id=str(uuid.uuid4()),
                start_time=state.break_started_at,
                end_time=event.ended_at,
                duration_minutes=round(taken / 60),
                type=state.break_type,
            )
        )
        session.stats.break_count += 1

    return dataclasses.replace(
        state,
        is_active=False,
        is_paused=False,
        on_break=False,
        break_started_at=None,
        break_type="manual",
        current_session=session,
    )


def timer_reducer(state: TimerState, event: TimerEvent) -> TimerState:
    """Apply one event to the timer state."""
    if isinstance(event, StartSession):
        return _start_session(state, event)
    if isinstance(event, Tick):
        return _tick(state)
    if isinstance(event, Pause):
        return _pause(state)
    if isinstance(event, Resume):
        return _resume(state)
    if isinstance(event, CompleteSession):
        return _complete(state, event)
    if isinstance(event, CancelSession):
        return INITIAL_STATE
    if isinstance(event, StartBreak):
        return _start_break(state, event)
    if isinstance(event, EndBreak):
        return _end_break(state, event)
    return state


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS. Minutes are not rolled over into hours."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"


def progress(state: TimerState) -> float:
    """Percentage of the focus session elapsed, clamped to [0, 100]."""
    session = state.current_session
    if session is None:
        return 0.0

    total = session.total_seconds
    if total <= 0:
        return 100.0 if session.is_completed else 0.0

    elapsed = total - state.time_remaining
    return min(100.0, max(0.0, elapsed / total * 100))
