"""Energy-aware session length recommendations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from .snapshot import SnapshotStore

EnergyLevel = Literal["high", "medium", "low"]
TimeOfDay = Literal["morning", "afternoon", "evening"]

PATTERNS_KEY = "user-energy-patterns"
_HISTORY_LIMIT = 20  # per time of day and outcome
_RECENT_WINDOW = 5
_MIN_SAMPLES = 3


@dataclass(frozen=True)
class EnergyRecommendation:
    duration: int  # minutes
    reasoning: str
    confidence: float


def time_of_day(hour: int) -> TimeOfDay:
    """Bucket an hour of the day (0-23)."""
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    return "evening"


def default_energy(period: TimeOfDay) -> EnergyLevel:
    """Typical energy for a time of day when nothing has been learned yet."""
    return {"morning": "high", "afternoon": "medium", "evening": "low"}[period]


def recommend(energy: EnergyLevel, period: TimeOfDay) -> EnergyRecommendation:
    """Suggest a focus session length."""
    if energy == "high":
        if period == "morning":
            duration, reasoning, confidence = (
                45,
                "You're at peak focus in the morning. Take advantage with a longer session!",
                0.9,
            )
        else:
            duration, reasoning, confidence = (
                30,
                "High energy detected! You can handle a solid focus session.",
                0.8,
            )
    elif energy == "medium":
        duration, reasoning, confidence = (
            25,
            "A classic Pomodoro session works well with medium energy levels.",
            0.7,
        )
    else:
        duration, reasoning, confidence = (
            15,
            "Low energy? No problem. A short focused burst can still be productive.",
            0.8,
        )

    if period == "evening" and duration > 25:
        duration = min(duration, 20)
        reasoning = "Evening sessions work best when kept short and gentle."
        confidence = 0.9

    return EnergyRecommendation(duration, reasoning, confidence)


class EnergyTracker:
    """Learns energy levels per time of day from session outcomes."""

    def __init__(self, store: SnapshotStore, now: datetime | None = None):
        self.store = store
        self.period = time_of_day((now or datetime.now()).hour)
        self.energy: EnergyLevel = self._learned_energy() or default_energy(self.period)

    def _patterns(self) -> dict:
        return self.store.get(PATTERNS_KEY) or {}

    def _learned_energy(self) -> EnergyLevel | None:
        bucket = self._patterns().get(self.period)
        if not bucket:
            return None
        return _energy_from(bucket)

    def recommendation(self) -> EnergyRecommendation:
        return recommend(self.energy, self.period)

    def set_energy(self, level: EnergyLevel) -> None:
        self.energy = level

    def record_session(self, duration: int, completed: bool, when: datetime | None = None) -> EnergyLevel:
        """Remember how a session went and update the current energy level."""
        when = when or datetime.now().astimezone()
        patterns = self._patterns()
        bucket = patterns.setdefault(self.period, {"successful": [], "failed": []})

        entry = {
            "duration": duration,
            "completed": completed,
            "timestamp": when.isoformat(),
            "energy": self.energy,
        }
        bucket["successful" if completed else "failed"].append(entry)
        bucket["successful"] = bucket["successful"][-_HISTORY_LIMIT:]
        bucket["failed"] = bucket["failed"][-_HISTORY_LIMIT:]

        self.store.set(PATTERNS_KEY, patterns)

        learned = _energy_from(bucket)
        if learned is not None:
            self.energy = learned
        return self.energy


def _energy_from(bucket: dict) -> EnergyLevel | None:
    sessions = sorted(
        bucket.get("successful", []) + bucket.get("failed", []),
        key=lambda s: s["timestamp"],
    )[-_RECENT_WINDOW:]
    if len(sessions) < _MIN_SAMPLES:
        return None

    rate = sum(1 for s in sessions if s["completed"]) / len(sessions)
    if rate > 0.7:
        return "high"
    if rate > 0.4:
        return "medium"
    return "low"
