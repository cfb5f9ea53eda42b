"""Focus session data model."""

from __future__ import annotations

import copy
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Literal

BreakType = Literal["auto", "manual"]

# Break lengths offered to the user (minutes)
BREAK_DURATIONS = (5, 10, 15, 20)

# value -> label shown next to the preset
DURATION_PRESETS: dict[int, str] = {
    15: "QUICK",
    25: "POMODORO",
    45: "DEEP WORK",
    60: "LONG FOCUS",
    90: "EXTENDED",
}


def _now() -> datetime:
    return datetime.now().astimezone()


def _parse_dt(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _format_dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Break:
    """A break taken during a focus session."""

    break_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    type: BreakType = "manual"

    def to_dict(self) -> dict:
        return {
            "break_id": self.break_id,
            "start_time": _format_dt(self.start_time),
            "end_time": _format_dt(self.end_time),
            "duration_minutes": self.duration_minutes,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Break:
        return cls(
            break_id=data["break_id"],
            start_time=_parse_dt(data["start_time"]),
            end_time=_parse_dt(data["end_time"]),
            duration_minutes=data["duration_minutes"],
            type=data.get("type", "manual"),
        )


@dataclass
class SessionStats:
    """Running statistics for a session."""

    start_time: datetime
    focus_minutes: int = 0
    break_count: int = 0
    tasks_completed: int = 0
    end_time: datetime | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["start_time"] = _format_dt(self.start_time)
        data["end_time"] = _format_dt(self.end_time)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> SessionStats:
        return cls(
            start_time=_parse_dt(data["start_time"]),
            focus_minutes=data.get("focus_minutes", 0),
            break_count=data.get("break_count", 0),
            tasks_completed=data.get("tasks_completed", 0),
            end_time=_parse_dt(data.get("end_time")),
        )


@dataclass
class FocusOptions:
    """Per-session options chosen at setup time.

    ``block_distractions`` and ``end_sound`` are only read by the host UI.
    """

    auto_break: bool = False
    break_duration: int = 5
    block_distractions: bool = False
    end_sound: bool = True

    def __post_init__(self):
        if self.break_duration not in BREAK_DURATIONS:
            raise ValueError(
                f"break_duration must be one of {BREAK_DURATIONS}, "
                f"got {self.break_duration}"
            )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> FocusOptions:
        return cls(**data)


@dataclass
class FocusSession:
    """A single-task focus session."""

    session_id: str
    task_title: str
    duration_minutes: int
    start_time: datetime
    stats: SessionStats
    options: FocusOptions = field(default_factory=FocusOptions)
    breaks: list[Break] = field(default_factory=list)
    is_completed: bool = False
    end_time: datetime | None = None

    @property
    def total_seconds(self) -> int:
        return self.duration_minutes * 60

    @classmethod
    def create(
        cls,
        task_title: str,
        duration_minutes: int,
        options: FocusOptions | None = None,
        start_time: datetime | None = None,
    ) -> FocusSession:
        """Create a new, not yet started session."""
        if duration_minutes < 0:
            raise ValueError("duration_minutes cannot be negative")

        start = start_time or _now()
        return cls(
            session_id=str(uuid.uuid4()),
            task_title=task_title.strip(),
            duration_minutes=duration_minutes,
            start_time=start,
            stats=SessionStats(start_time=start),
            options=options or FocusOptions(),
        )

    def copy(self) -> FocusSession:
        """Deep copy, used when the engine hands a session to its host."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "task_title": self.task_title,
            "duration_minutes": self.duration_minutes,
            "start_time": _format_dt(self.start_time),
            "end_time": _format_dt(self.end_time),
            "breaks": [b.to_dict() for b in self.breaks],
            "is_completed": self.is_completed,
            "stats": self.stats.to_dict(),
            "options": self.options.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> FocusSession:
        return cls(
            session_id=data["session_id"],
            task_title=data["task_title"],
            duration_minutes=data["duration_minutes"],
            start_time=_parse_dt(data["start_time"]),
            end_time=_parse_dt(data.get("end_time")),
            breaks=[Break.from_dict(b) for b in data.get("breaks", [])],
            is_completed=data.get("is_completed", False),
            stats=SessionStats.from_dict(data["stats"]),
            options=FocusOptions.from_dict(data.get("options", {})),
        )
