"""Focus mode - session model, timer state machine and engine."""

from .engine import SNAPSHOT_KEY, FocusTimerEngine
from .history import SessionHistory, WeeklyStats
from .hyperfocus import BreakSuggestion, HyperfocusGuard
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from .session import (
    BREAK_DURATIONS,
    DURATION_PRESETS,
    Break,
    FocusOptions,
    FocusSession,
    SessionStats,
)
from .snapshot import JsonFileSnapshotStore, MemorySnapshotStore, SnapshotStore
from .timer import INITIAL_STATE, TimerState, format_time, progress, timer_reducer

__all__ = [
    "AsyncioScheduler",
    "BREAK_DURATIONS",
    "Break",
    "BreakSuggestion",
    "DURATION_PRESETS",
    "FocusOptions",
    "FocusSession",
    "FocusTimerEngine",
    "HyperfocusGuard",
    "INITIAL_STATE",
    "JsonFileSnapshotStore",
    "ManualScheduler",
    "MemorySnapshotStore",
    "SNAPSHOT_KEY",
    "Scheduler",
    "SessionHistory",
    "SessionStats",
    "SnapshotStore",
    "TimerState",
    "WeeklyStats",
    "format_time",
    "progress",
    "timer_reducer",
]
