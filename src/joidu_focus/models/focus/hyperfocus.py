"""Hyperfocus protection: break suggestions after long stretches of focus.

``HyperfocusGuard`` listens to a ``FocusTimerEngine`` and counts the seconds
the countdown actually ran since the last break. Each time that stretch
crosses a higher threshold it queues a ``BreakSuggestion``; hosts pick it up
with ``take_suggestion`` and either show it or start an ``"auto"`` break.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from .timer import TimerPhase, TimerState

if TYPE_CHECKING:
    from .engine import FocusTimerEngine

logger = logging.getLogger(__name__)

Urgency = Literal["none", "gentle", "strong", "urgent", "emergency"]

URGENCY_LEVELS: tuple[Urgency, ...] = ("none", "gentle", "strong", "urgent", "emergency")

# Minutes of uninterrupted focus, checked from the highest level down
HYPERFOCUS_THRESHOLDS: tuple[tuple[int, Urgency], ...] = (
    (120, "emergency"),
    (90, "urgent"),
    (45, "strong"),
    (25, "gentle"),
)

_SUGGESTIONS: dict[str, tuple[str, str, int]] = {
    "gentle": (
        "Gentle reminder",
        "You've been focused for 25 minutes, great job! "
        "Consider a short 5-minute break to help your brain reset.",
        5,
    ),
    "strong": (
        "Strong suggestion: break time",
        "You've been focusing for 45+ minutes. "
        "Your brain would benefit from a 10-minute recharge break.",
        10,
    ),
    "urgent": (
        "Urgent: take a break",
        "You've been hyperfocusing for 90+ minutes and your brain is running on empty. "
        "A 15-minute break will make you more productive.",
        15,
    ),
    "emergency": (
        "Emergency break needed",
        "You've been focusing for over 2 hours. Rest now to prevent burnout; "
        "your wellbeing matters more than any task.",
        20,
    ),
}


@dataclass(frozen=True)
class BreakActivity:
    activity_id: str
    label: str
    duration_minutes: int


@dataclass(frozen=True)
class BreakSuggestion:
    urgency: Urgency
    title: str
    message: str
    break_minutes: int
    focus_minutes: int
    activities: tuple[BreakActivity, ...] = ()


def urgency_for(focus_minutes: int) -> Urgency:
    """Urgency level for a stretch of ``focus_minutes``."""
    for threshold, urgency in HYPERFOCUS_THRESHOLDS:
        if focus_minutes >= threshold:
            return urgency
    return "none"


def break_activities(focus_minutes: int) -> tuple[BreakActivity, ...]:
    """Break ideas that fit how long the user has been focusing."""
    if focus_minutes < 30:
        return (
            BreakActivity("water", "Drink water", 2),
            BreakActivity("stretch", "Quick stretch", 3),
            BreakActivity("breathe", "Deep breaths", 5),
        )
    if focus_minutes < 60:
        return (
            BreakActivity("walk", "Short walk", 10),
            BreakActivity("snack", "Healthy snack", 5),
            BreakActivity("nature", "Look outside", 5),
        )
    return (
        BreakActivity("meal", "Eat something", 15),
        BreakActivity("nap", "Power nap", 20),
        BreakActivity("fresh-air", "Go outside", 15),
    )


def suggestion_for(urgency: Urgency, focus_minutes: int) -> BreakSuggestion | None:
    if urgency == "none":
        return None
    title, message, break_minutes = _SUGGESTIONS[urgency]
    return BreakSuggestion(
        urgency=urgency,
        title=title,
        message=message,
        break_minutes=break_minutes,
        focus_minutes=focus_minutes,
        activities=break_activities(focus_minutes),
    )


def encouragement(breaks_suggested: int, breaks_accepted: int) -> str:
    """A nudge based on how often suggested breaks were taken."""
    rate = breaks_accepted / breaks_suggested if breaks_suggested else 1.0
    if rate > 0.7:
        return "You're doing great at taking care of your brain!"
    if rate > 0.4:
        return "Remember: breaks aren't weakness, they're brain maintenance!"
    return "Your brain is precious. Please consider taking that break."


class HyperfocusGuard:
    """Tracks uninterrupted focus time on an engine and suggests breaks.

    Only seconds the focus countdown actually ran are counted, so pauses do
    not add up. Any break resets the stretch; a break taken while a
    suggestion is outstanding counts as accepted.

    The guard never drives the engine itself. Listeners run inside the
    engine's transitions, so the host decides what to do with a suggestion
    from its own loop.
    """

    def __init__(self, engine: FocusTimerEngine):
        self.focus_seconds = 0
        self.urgency: Urgency = "none"
        self.current_suggestion: BreakSuggestion | None = None
        self.breaks_suggested = 0
        self.breaks_accepted = 0

        self._pending: BreakSuggestion | None = None
        self._last: TimerState | None = None
        self._unsubscribe: Callable[[], None] = engine.subscribe(self._on_change)

    @property
    def focus_minutes(self) -> int:
        return self.focus_seconds // 60

    @property
    def acceptance_rate(self) -> float:
        if not self.breaks_suggested:
            return 0.0
        return self.breaks_accepted / self.breaks_suggested

    @property
    def encouragement_message(self) -> str:
        return encouragement(self.breaks_suggested, self.breaks_accepted)

    def take_suggestion(self) -> BreakSuggestion | None:
        """Return a suggestion not handed out yet, if there is one."""
        suggestion, self._pending = self._pending, None
        return suggestion

    def dismiss(self) -> None:
        """Hide the current suggestion. The same level is not suggested again."""
        if self.current_suggestion is not None:
            logger.info("Break suggestion dismissed (%s)", self.urgency)
        self.current_suggestion = None
        self._pending = None

    def close(self) -> None:
        self._unsubscribe()

    def _reset_stretch(self) -> None:
        self.focus_seconds = 0
        self.urgency = "none"
        self.current_suggestion = None
        self._pending = None

    def _on_change(self, phase: TimerPhase, state: TimerState) -> None:
        last, self._last = self._last, state

        if phase == "on_break":
            if self.current_suggestion is not None:
                self.breaks_accepted += 1
            self._reset_stretch()
            return

        if last is None or last.session_id != state.session_id:
            self._reset_stretch()
            return

        if phase != "running" or last.phase != "running":
            return

        elapsed = last.time_remaining - state.time_remaining
        if elapsed > 0:
            self.focus_seconds += elapsed
            self._check_thresholds()

    def _check_thresholds(self) -> None:
        urgency = urgency_for(self.focus_minutes)
        if URGENCY_LEVELS.index(urgency) <= URGENCY_LEVELS.index(self.urgency):
            return

        self.urgency = urgency
        self.current_suggestion = suggestion_for(urgency, self.focus_minutes)
        self._pending = self.current_suggestion
        self.breaks_suggested += 1
        logger.info(
            "Break suggested after %d min of focus (%s)", self.focus_minutes, urgency
        )
