"""Finished focus sessions, stored in SQLite, with weekly insights and export."""

import csv
import io
import json
import sqlite3
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Literal

from .session import FocusSession

SessionStatus = Literal["completed", "cancelled"]
Period = Literal["week", "month", "all"]
ExportFormat = Literal["json", "csv"]

CSV_HEADER = [
    "Task",
    "Date",
    "Duration (min)",
    "Completed",
    "Focus Time (min)",
    "Breaks",
    "Completion %",
    "Focus Score",
]


@dataclass
class WeeklyStats:
    """Aggregate numbers for the last seven days."""

    total_sessions: int = 0
    total_focus_time: int = 0  # minutes
    average_session_length: int = 0
    average_completion_rate: int = 0
    most_productive_day: str = "No data"
    total_breaks_taken: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def productivity_score(completion_percentage: int, breaks_used: int, was_completed: bool) -> int:
    """Score a session 0-100: completion, minus 5 per break, +10 if finished."""
    score = max(0, completion_percentage - 5 * breaks_used)
    if was_completed:
        score += 10
    return min(100, score)


class SessionHistory:
    """Manages focus session history in a SQLite database."""

    def __init__(self, db_path: Path | None = None):
        """Initialize history storage."""
        if db_path is None:
            from platformdirs import user_data_dir

            data_dir = Path(user_data_dir("joidu_focus"))
            db_path = data_dir / "focus_history.db"

        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS focus_sessions (
                    id TEXT PRIMARY KEY,
                    task_title TEXT NOT NULL,
                    duration_minutes INTEGER NOT NULL,
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    status TEXT NOT NULL,
                    total_time_spent INTEGER NOT NULL,
                    breaks_used INTEGER NOT NULL,
                    completion_percentage INTEGER NOT NULL,
                    productivity_score INTEGER NOT NULL,
                    session_json TEXT NOT NULL,
                    completed_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_focus_sessions_completed_at
                ON focus_sessions(completed_at)
                """
            )
            conn.commit()

    def record(
        self,
        session: FocusSession,
        *,
        status: SessionStatus,
        time_remaining: int = 0,
        finished_at: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Store a finished session.

        Args:
            session: The session that ended
            status: "completed" or "cancelled"
            time_remaining: Seconds left on the clock when it ended
            finished_at: When it ended, defaults to now

        Returns:
            The stored row as a dictionary
        """
        finished_at = finished_at or session.end_time or datetime.now().astimezone()
        total = session.total_seconds
        was_completed = status == "completed"

        if was_completed:
            spent_seconds = total
        else:
            spent_seconds = max(0, total - time_remaining)

        if total > 0:
            completion = min(100, round(spent_seconds / total * 100))
        else:
            completion = 100 if was_completed else 0

        breaks_used = len(session.breaks)
        score = productivity_score(completion, breaks_used, was_completed)

        row = {
            "id": session.session_id,
            "task_title": session.task_title,
            "duration_minutes": session.duration_minutes,
            "start_time": session.start_time.isoformat(),
            "end_time": session.end_time.isoformat() if session.end_time else None,
            "status": status,
            "total_time_spent": spent_seconds // 60,
            "breaks_used": breaks_used,
            "completion_percentage": completion,
            "productivity_score": score,
            "session_json": json.dumps(session.to_dict()),
            "completed_at": finished_at.isoformat(),
        }

        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO focus_sessions (
                    id, task_title, duration_minutes, start_time, end_time,
                    status, total_time_spent, breaks_used, completion_percentage,
                    productivity_score, session_json, completed_at
                ) VALUES (
                    :id, :task_title, :duration_minutes, :start_time, :end_time,
                    :status, :total_time_spent, :breaks_used, :completion_percentage,
                    :productivity_score, :session_json, :completed_at
                )
                """,
                row,
            )
            conn.commit()

        return _public(row)

    def recent(self, limit: int = 20) -> list[dict[str, Any]]:
        """Most recently finished sessions first."""
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM focus_sessions ORDER BY completed_at DESC LIMIT ?",
                (limit,),
            )
            return [_public(dict(row)) for row in cursor.fetchall()]

    def sessions_since(self, cutoff: datetime | None) -> list[dict[str, Any]]:
        """Sessions finished at or after ``cutoff`` (all of them if None)."""
        with self._connect() as conn:
            if cutoff is None:
                cursor = conn.execute(
                    "SELECT * FROM focus_sessions ORDER BY completed_at DESC"
                )
            else:
                cursor = conn.execute(
                    """
                    SELECT * FROM focus_sessions
                    WHERE completed_at >= ?
                    ORDER BY completed_at DESC
                    """,
                    (cutoff.isoformat(),),
                )
            return [_public(dict(row)) for row in cursor.fetchall()]

    def filter_period(self, period: Period = "week", now: datetime | None = None) -> list[dict[str, Any]]:
        """Sessions for the last week, the last month, or all time."""
        return self.sessions_since(_period_cutoff(period, now))

    def weekly_stats(self, now: datetime | None = None) -> WeeklyStats:
        """Aggregate the last seven days of sessions."""
        sessions = self.filter_period("week", now)
        if not sessions:
            return WeeklyStats()

        total_focus = sum(s["total_time_spent"] for s in sessions)
        day_totals: dict[str, int] = {}
        for s in sessions:
            day = datetime.fromisoformat(s["completed_at"]).strftime("%A")
            day_totals[day] = day_totals.get(day, 0) + s["total_time_spent"]

        return WeeklyStats(
            total_sessions=len(sessions),
            total_focus_time=total_focus,
            average_session_length=round(total_focus / len(sessions)),
            average_completion_rate=round(
                sum(s["completion_percentage"] for s in sessions) / len(sessions)
            ),
            most_productive_day=max(day_totals, key=day_totals.get),
            total_breaks_taken=sum(s["breaks_used"] for s in sessions),
        )

    def export(self, period: Period = "week", fmt: ExportFormat = "json", now: datetime | None = None) -> str:
        """Render sessions for a period as JSON or CSV text."""
        sessions = self.filter_period(period, now)
        if fmt == "json":
            return json.dumps(sessions, indent=2)
        if fmt == "csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(CSV_HEADER)
            for s in sessions:
                writer.writerow(
                    [
                        s["task_title"].replace(",", ";"),
                        datetime.fromisoformat(s["completed_at"]).date().isoformat(),
                        s["duration_minutes"],
                        "Yes" if s["was_completed"] else "No",
                        s["total_time_spent"],
                        s["breaks_used"],
                        s["completion_percentage"],
                        s["productivity_score"],
                    ]
                )
            return buffer.getvalue()
        raise ValueError(f"Unsupported export format: {fmt}")

    def clear(self) -> int:
        """Delete all history. Returns the number of sessions removed."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM focus_sessions")
            conn.commit()
            return cursor.rowcount


def _period_cutoff(period: Period, now: datetime | None) -> datetime | None:
    now = now or datetime.now().astimezone()
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now - timedelta(days=30)
    if period == "all":
        return None
    raise ValueError(f"Unknown period: {period}")


def _public(row: dict[str, Any]) -> dict[str, Any]:
    row = dict(row)
    row.pop("session_json", None)
    row["was_completed"] = row["status"] == "completed"
    return row
