"""Tests for the focus commands.

The live timer loop is replaced with an AsyncMock so commands run instantly.
"""

from __future__ import annotations

import asyncio
import io
import itertools
import json
import re
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console
from typer.testing import CliRunner

from joidu_focus.commands.focus import run_focus_session
from joidu_focus.main import app
from joidu_focus.models.focus.engine import FocusTimerEngine
from joidu_focus.models.focus.energy import PATTERNS_KEY
from joidu_focus.models.focus.history import SessionHistory
from joidu_focus.models.focus.scheduler import ManualScheduler
from joidu_focus.models.focus.snapshot import JsonFileSnapshotStore
from joidu_focus.models.focus.timer import TimerState
from joidu_focus.models.focus.ui import TimerDisplay

runner = CliRunner()


def strip_ansi(text: str) -> str:
    ansi = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi.sub("", text)


@pytest.fixture()
def store(tmp_config) -> JsonFileSnapshotStore:
    return JsonFileSnapshotStore(tmp_config.state_dir)


@pytest.fixture()
def history(tmp_config) -> SessionHistory:
    return SessionHistory(tmp_config.history_path)


@pytest.fixture()
def saved_session(store, make_session):
    """A snapshot left behind by an interrupted run."""
    session = make_session("Interrupted work", minutes=25)
    data = session.to_dict()
    data["time_remaining"] = 600
    data["saved_at"] = "2024-05-06T09:30:00+00:00"
    store.set("focus-session", data)
    return session


def _finished(session, phase="completed"):
    done = session.copy()
    if phase == "completed":
        done.is_completed = True
    return AsyncMock(return_value=(phase, TimerState(current_session=done, time_remaining=300)))


# ---------------------------------------------------------------------------
# start / resume
# ---------------------------------------------------------------------------


class TestStart:
    def test_start_runs_session(self, tmp_config, store, make_session, mocker) -> None:
        run = mocker.patch(
            "joidu_focus.commands.focus.run_focus_session",
            new=_finished(make_session("Write", minutes=1)),
        )

        result = runner.invoke(app, ["focus", "start", "Write", "--minutes", "1", "--break", "10"])

        assert result.exit_code == 0, result.output
        engine, display, session = run.await_args.args
        assert isinstance(engine, FocusTimerEngine)
        assert isinstance(display, TimerDisplay)
        assert session.task_title == "Write"
        assert session.duration_minutes == 1
        assert session.options.break_duration == 10
        assert "Focus Session Complete" in strip_ansi(result.output)
        assert store.get(PATTERNS_KEY) is not None

    def test_start_uses_config_defaults(self, tmp_config, make_session, mocker) -> None:
        tmp_config.set_value("focus.default_duration", 45)
        tmp_config.set_value("focus.auto_break", True)
        run = mocker.patch(
            "joidu_focus.commands.focus.run_focus_session",
            new=_finished(make_session()),
        )

        result = runner.invoke(app, ["focus", "start", "Plan"])

        assert result.exit_code == 0, result.output
        session = run.await_args.args[2]
        assert session.duration_minutes == 45
        assert session.options.auto_break is True

    def test_start_cancelled(self, tmp_config, make_session, mocker) -> None:
        mocker.patch(
            "joidu_focus.commands.focus.run_focus_session",
            new=_finished(make_session(), phase="cancelled"),
        )

        result = runner.invoke(app, ["focus", "start", "Write"])

        assert result.exit_code == 0, result.output
        assert "Session Stopped" in strip_ansi(result.output)

    def test_start_rejects_bad_break(self, tmp_config, mocker) -> None:
        run = mocker.patch("joidu_focus.commands.focus.run_focus_session", new=AsyncMock())

        result = runner.invoke(app, ["focus", "start", "Write", "--break", "7"])

        assert result.exit_code == 2
        run.assert_not_awaited()

    def test_start_rejects_negative_minutes(self, tmp_config, mocker) -> None:
        mocker.patch("joidu_focus.commands.focus.run_focus_session", new=AsyncMock())

        result = runner.invoke(app, ["focus", "start", "Write", "--minutes", "-5"])

        assert result.exit_code == 2

    def test_start_rejects_blank_title(self, tmp_config, mocker) -> None:
        mocker.patch("joidu_focus.commands.focus.run_focus_session", new=AsyncMock())

        result = runner.invoke(app, ["focus", "start", "   "])

        assert result.exit_code == 2

    def test_start_with_unfinished_session(self, tmp_config, saved_session, mocker) -> None:
        run = mocker.patch("joidu_focus.commands.focus.run_focus_session", new=AsyncMock())

        result = runner.invoke(app, ["focus", "start", "Something else"])

        assert result.exit_code == 7
        run.assert_not_awaited()


class TestResume:
    def test_resume_without_snapshot(self, tmp_config) -> None:
        result = runner.invoke(app, ["focus", "resume"])
        assert result.exit_code == 5

    def test_resume_restores_engine(self, tmp_config, saved_session, mocker) -> None:
        run = mocker.patch(
            "joidu_focus.commands.focus.run_focus_session",
            new=_finished(saved_session),
        )

        result = runner.invoke(app, ["focus", "resume"])

        assert result.exit_code == 0, result.output
        engine = run.await_args.args[0]
        assert len(run.await_args.args) == 2
        assert engine.phase == "paused"
        assert engine.state.time_remaining == 600
        assert engine.state.session_id == saved_session.session_id
        assert "10:00 left" in strip_ansi(result.output)


# ---------------------------------------------------------------------------
# status / discard / presets / recommend
# ---------------------------------------------------------------------------


class TestStatus:
    def test_nothing_in_progress(self, tmp_config) -> None:
        result = runner.invoke(app, ["focus", "status"])

        assert result.exit_code == 0
        assert "No focus session in progress" in strip_ansi(result.output)

    def test_json(self, tmp_config, saved_session) -> None:
        result = runner.invoke(app, ["focus", "status", "-o", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["task"] == "Interrupted work"
        assert data["time_remaining"] == "10:00"
        assert data["progress"] == "60%"

    @pytest.mark.parametrize(
        "data",
        [
            {"task_title": "Half written", "time_remaining": 60},
            {"session_id": "abc", "task_title": "No stats", "duration_minutes": 25},
            ["not", "a", "session"],
        ],
    )
    def test_unreadable_snapshot(self, tmp_config, store, data) -> None:
        store.set("focus-session", data)

        result = runner.invoke(app, ["focus", "status"])

        assert result.exit_code == 5
        assert "unreadable" in strip_ansi(result.output)
        assert "unexpected" not in strip_ansi(result.output)

    def test_bad_output_format(self, tmp_config) -> None:
        result = runner.invoke(app, ["focus", "status", "-o", "xml"])
        assert result.exit_code == 2


class TestDiscard:
    def test_discard(self, tmp_config, store, saved_session) -> None:
        result = runner.invoke(app, ["focus", "discard"])

        assert result.exit_code == 0
        assert store.get("focus-session") is None

    def test_discard_nothing(self, tmp_config) -> None:
        result = runner.invoke(app, ["focus", "discard"])
        assert result.exit_code == 5


def test_presets(tmp_config) -> None:
    result = runner.invoke(app, ["focus", "presets", "-o", "json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert {"minutes": 25, "label": "POMODORO"} in data


class TestRecommend:
    @pytest.mark.parametrize(
        ("args", "expected"),
        [
            (["--energy", "high", "--hour", "9"], "45 minutes"),
            (["--energy", "high", "--hour", "20"], "20 minutes"),
            (["--energy", "low", "--hour", "14"], "15 minutes"),
            (["--hour", "14"], "25 minutes"),
        ],
    )
    def test_recommendation(self, tmp_config, args, expected) -> None:
        result = runner.invoke(app, ["focus", "recommend", *args])

        assert result.exit_code == 0, result.output
        assert expected in strip_ansi(result.output)

    @pytest.mark.parametrize("args", [["--hour", "24"], ["--energy", "extreme"]])
    def test_invalid_input(self, tmp_config, args) -> None:
        result = runner.invoke(app, ["focus", "recommend", *args])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# history / stats / export / clear
# ---------------------------------------------------------------------------


class TestHistory:
    def test_empty(self, tmp_config) -> None:
        result = runner.invoke(app, ["focus", "history"])

        assert result.exit_code == 0
        assert "No focus sessions recorded yet" in strip_ansi(result.output)

    def test_json(self, tmp_config, history, make_session) -> None:
        history.record(make_session("Write"), status="completed")
        history.record(make_session("Read"), status="cancelled", time_remaining=1500)

        result = runner.invoke(app, ["focus", "history", "-o", "json", "--limit", "1"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert len(data) == 1
        assert data[0]["task"] in ("Write", "Read")

    def test_unknown_period(self, tmp_config) -> None:
        result = runner.invoke(app, ["focus", "history", "--period", "year"])
        assert result.exit_code == 2


def test_stats(tmp_config, history, make_session) -> None:
    history.record(make_session("Write", minutes=30), status="completed")

    result = runner.invoke(app, ["focus", "stats", "-o", "json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["total_sessions"] == 1
    assert data["total_focus_time"] == 30


class TestExport:
    def test_csv_to_stdout(self, tmp_config, history, make_session) -> None:
        history.record(make_session("Write"), status="completed")

        result = runner.invoke(app, ["focus", "export", "--format", "csv"])

        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("Task,Date,Duration (min)")

    def test_json_to_file(self, tmp_config, history, make_session, tmp_path) -> None:
        history.record(make_session("Write"), status="completed")
        target = tmp_path / "export.json"

        result = runner.invoke(app, ["focus", "export", "--output", str(target), "--period", "all"])

        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text(encoding="utf-8"))[0]["task_title"] == "Write"

    def test_unknown_format(self, tmp_config) -> None:
        result = runner.invoke(app, ["focus", "export", "--format", "xml"])
        assert result.exit_code == 2


class TestClear:
    def test_clear_with_yes(self, tmp_config, history, make_session) -> None:
        history.record(make_session(), status="completed")

        result = runner.invoke(app, ["focus", "clear", "--yes"])

        assert result.exit_code == 0
        assert "Deleted 1" in strip_ansi(result.output)
        assert history.recent() == []

    def test_clear_declined(self, tmp_config, history, make_session) -> None:
        history.record(make_session(), status="completed")

        result = runner.invoke(app, ["focus", "clear"], input="n\n")

        assert result.exit_code == 0
        assert len(history.recent()) == 1


# ---------------------------------------------------------------------------
# live loop
# ---------------------------------------------------------------------------


def _keyboard(scheduler: ManualScheduler, seconds_per_poll: float, quit_after: int) -> MagicMock:
    """Keyboard whose every poll moves the virtual clock, then presses 'q'."""
    polls = itertools.count(1)

    def get_key():
        if next(polls) > quit_after:
            return "q"
        scheduler.advance(seconds_per_poll)
        return None

    keyboard = MagicMock()
    keyboard.get_key.side_effect = get_key
    return keyboard


class TestRunFocusSession:
    @pytest.fixture()
    def scheduler(self) -> ManualScheduler:
        return ManualScheduler()

    @pytest.fixture()
    def display(self) -> TimerDisplay:
        return TimerDisplay(Console(file=io.StringIO()))

    @pytest.mark.asyncio
    async def test_runs_to_completion(self, scheduler, display, make_session) -> None:
        engine = FocusTimerEngine(scheduler)
        keyboard = _keyboard(scheduler, 60, quit_after=100)

        phase, state = await run_focus_session(
            engine, display, make_session(minutes=5), keyboard=keyboard, poll_interval=0
        )

        assert phase == "completed"
        assert state.current_session.is_completed is True
        keyboard.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_hyperfocus_starts_auto_break(self, scheduler, display, make_session) -> None:
        engine = FocusTimerEngine(scheduler)
        # 25 polls reach the gentle reminder, 5 more run out the 5-minute break
        keyboard = _keyboard(scheduler, 60, quit_after=32)

        phase, state = await run_focus_session(
            engine,
            display,
            make_session(minutes=60, auto_break=True),
            keyboard=keyboard,
            poll_interval=0,
        )

        assert phase == "cancelled"
        breaks = state.current_session.breaks
        assert len(breaks) == 1
        assert breaks[0].type == "auto"

    @pytest.mark.asyncio
    async def test_suggestion_only_shown_without_auto_break(
        self, scheduler, display, make_session, mocker
    ) -> None:
        engine = FocusTimerEngine(scheduler)
        layouts = mocker.spy(display, "create_layout")
        keyboard = _keyboard(scheduler, 60, quit_after=27)

        phase, state = await run_focus_session(
            engine, display, make_session(minutes=60), keyboard=keyboard, poll_interval=0
        )

        assert phase == "cancelled"
        assert state.current_session.breaks == []
        shown = [c.kwargs.get("suggestion") for c in layouts.call_args_list]
        assert any(s is not None and s.urgency == "gentle" for s in shown)

    @pytest.mark.asyncio
    async def test_keyboard_interrupt_cancels(self, scheduler, display, make_session) -> None:
        engine = FocusTimerEngine(scheduler)
        keyboard = MagicMock()
        keyboard.get_key.side_effect = KeyboardInterrupt

        phase, state = await run_focus_session(
            engine, display, make_session(), keyboard=keyboard, poll_interval=0
        )

        assert phase == "cancelled"
        assert state.current_session is not None
        assert engine.phase == "idle"
        keyboard.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_task_cancellation_propagates(self, scheduler, display, make_session) -> None:
        engine = FocusTimerEngine(scheduler)
        keyboard = MagicMock()
        keyboard.get_key.return_value = None

        task = asyncio.create_task(
            run_focus_session(
                engine, display, make_session(), keyboard=keyboard, poll_interval=0.01
            )
        )
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert engine.phase == "idle"
        keyboard.stop.assert_called_once()
