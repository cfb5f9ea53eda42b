"""Focus mode commands with a live countdown."""

import asyncio
from datetime import datetime
from pathlib import Path

import typer
from rich.live import Live

from joidu_focus.models.focus.energy import EnergyTracker, recommend, time_of_day
from joidu_focus.models.focus.engine import FocusTimerEngine
from joidu_focus.models.focus.history import SessionHistory
from joidu_focus.models.focus.hyperfocus import HyperfocusGuard
from joidu_focus.models.focus.keyboard import KeyboardHandler, apply_key
from joidu_focus.models.focus.scheduler import AsyncioScheduler
from joidu_focus.models.focus.session import (
    BREAK_DURATIONS,
    DURATION_PRESETS,
    FocusOptions,
    FocusSession,
)
from joidu_focus.models.focus.snapshot import JsonFileSnapshotStore
from joidu_focus.models.focus.timer import TimerPhase, TimerState, format_time, progress
from joidu_focus.models.focus.ui import (
    TimerDisplay,
    show_completion_message,
    show_stopped_message,
)
from joidu_focus.services.config_service import get_config_service
from joidu_focus.utils.exit_codes import ERROR_CONFLICT, ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from joidu_focus.utils.ui.console import get_console
from joidu_focus.utils.ui.formatters import format_info, format_output, format_success

from .decorators import AppError, command_wrapper
from .utils import OUTPUT_HELP, output_format

console = get_console()
app = typer.Typer(help="Focus sessions with a live countdown")


def _snapshot_store() -> JsonFileSnapshotStore:
    return JsonFileSnapshotStore(get_config_service().state_dir)


def _history() -> SessionHistory:
    return SessionHistory(get_config_service().history_path)


async def run_focus_session(
    engine: FocusTimerEngine,
    display: TimerDisplay,
    session: FocusSession | None = None,
    keyboard: KeyboardHandler | None = None,
    poll_interval: float = 0.25,
) -> tuple[TimerPhase, TimerState]:
    """Run the live display until the session completes or is cancelled.

    Starts ``session`` if given, otherwise resumes the session the engine
    already holds (restored from a snapshot). Break suggestions from long
    stretches of focus are shown, and start an ``"auto"`` break when the
    session allows breaks. Returns the final phase and the last state that
    still carried the session.
    """
    finished = asyncio.Event()
    final: dict[str, object] = {"phase": "cancelled", "state": engine.state}

    def on_change(phase: TimerPhase, state: TimerState) -> None:
        if phase != "cancelled":
            final["state"] = state
        if phase in ("completed", "cancelled"):
            final["phase"] = phase
            finished.set()

    unsubscribe = engine.subscribe(on_change)
    guard = HyperfocusGuard(engine)
    keyboard = keyboard or KeyboardHandler()
    options = (session or engine.state.current_session).options

    try:
        if session is not None:
            engine.start_timer(session)
        else:
            engine.resume_timer()
        with Live(
            display.create_layout(engine.state),
            console=display.console,
            refresh_per_second=4,
            screen=True,
        ) as live:
            while not finished.is_set():
                apply_key(
                    engine,
                    keyboard.get_key(),
                    options.break_duration,
                    allow_breaks=options.auto_break,
                )
                suggestion = guard.take_suggestion()
                if suggestion is not None and options.auto_break and engine.phase == "running":
                    engine.start_break(suggestion.break_minutes, "auto")
                live.update(
                    display.create_layout(engine.state, suggestion=guard.current_suggestion)
                )
                await asyncio.sleep(poll_interval)
    except KeyboardInterrupt:
        engine.cancel_timer()
    except asyncio.CancelledError:
        engine.cancel_timer()
        raise
    finally:
        keyboard.stop()
        guard.close()
        unsubscribe()
        engine.close()

    return final["phase"], final["state"]


@app.command("start")
@command_wrapper
async def start_focus(
    task: str = typer.Argument(..., help="What you are focusing on"),
    minutes: int = typer.Option(None, "--minutes", "-m", help="Session length in minutes"),
    break_duration: int = typer.Option(
        None, "--break", "-b", help=f"Break length, one of {BREAK_DURATIONS}"
    ),
    auto_break: bool = typer.Option(
        None, "--auto-break/--no-auto-break", help="Offer breaks during the session"
    ),
):
    """Start a focus session."""
    focus_config = get_config_service().config.focus
    minutes = focus_config.default_duration if minutes is None else minutes

    try:
        options = FocusOptions(
            auto_break=focus_config.auto_break if auto_break is None else auto_break,
            break_duration=focus_config.break_duration if break_duration is None else break_duration,
            block_distractions=focus_config.block_distractions,
            end_sound=focus_config.end_sound,
        )
        session = FocusSession.create(task, minutes, options)
    except ValueError as e:
        raise AppError(str(e), exit_code=ERROR_INVALID_ARGS) from e

    if not session.task_title:
        raise AppError("Task title cannot be empty", exit_code=ERROR_INVALID_ARGS)

    store = _snapshot_store()
    existing = store.get(focus_config.snapshot_key)
    if existing:
        raise AppError(
            f"An unfinished session for '{existing.get('task_title')}' exists. "
            "Use 'joidu focus resume' or 'joidu focus discard'.",
            exit_code=ERROR_CONFLICT,
        )

    history = _history()
    engine = FocusTimerEngine(
        AsyncioScheduler(),
        store,
        tick_interval=focus_config.tick_interval,
        autosave_interval=focus_config.autosave_interval,
        snapshot_key=focus_config.snapshot_key,
        history=history,
    )

    console.print(f"\n[bold green]Focus session started[/bold green]: {session.task_title}")
    console.print(f"Duration: {session.duration_minutes} minutes\n")

    phase, state = await run_focus_session(engine, TimerDisplay(console), session)
    _finish(phase, state)


@app.command("resume")
@command_wrapper
async def resume_focus():
    """Resume a session saved by an interrupted run."""
    focus_config = get_config_service().config.focus
    store = _snapshot_store()
    engine = FocusTimerEngine(
        AsyncioScheduler(),
        store,
        tick_interval=focus_config.tick_interval,
        autosave_interval=focus_config.autosave_interval,
        snapshot_key=focus_config.snapshot_key,
        history=_history(),
    )
    if not engine.load_snapshot():
        raise AppError("No saved focus session to resume", exit_code=ERROR_NOT_FOUND)

    restored = engine.state
    session = restored.current_session
    console.print(
        f"\n[bold green]Resuming[/bold green]: {session.task_title} "
        f"({format_time(restored.time_remaining)} left)\n"
    )

    phase, state = await run_focus_session(engine, TimerDisplay(console))
    _finish(phase, state)


def _finish(phase: TimerPhase, state: TimerState) -> None:
    session = state.current_session
    if session is None:
        return

    tracker = EnergyTracker(_snapshot_store())
    tracker.record_session(session.duration_minutes, completed=phase == "completed")

    if phase == "completed":
        show_completion_message(session, console)
    else:
        show_stopped_message(session, state.time_remaining, console)


@app.command("status")
@command_wrapper
def focus_status(
    output: str = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """Show the saved snapshot of an unfinished session."""
    output = output_format(output)
    focus_config = get_config_service().config.focus
    data = _snapshot_store().get(focus_config.snapshot_key)
    if not data:
        format_info("No focus session in progress")
        return

    try:
        session = FocusSession.from_dict(
            {k: v for k, v in data.items() if k not in ("time_remaining", "saved_at")}
        )
        time_remaining = int(data.get("time_remaining", 0))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise AppError(
            "The saved focus session is unreadable. Use 'joidu focus discard' to remove it.",
            exit_code=ERROR_NOT_FOUND,
        ) from e

    state = TimerState(
        time_remaining=time_remaining,
        session_id=session.session_id,
        current_session=session,
        is_paused=True,
    )
    format_output(
        {
            "task": session.task_title,
            "duration_minutes": session.duration_minutes,
            "time_remaining": format_time(state.time_remaining),
            "progress": f"{progress(state):.0f}%",
            "breaks": len(session.breaks),
            "saved_at": data.get("saved_at"),
        },
        output,
    )


@app.command("discard")
@command_wrapper
def discard_focus():
    """Delete the saved snapshot of an unfinished session."""
    focus_config = get_config_service().config.focus
    store = _snapshot_store()
    if store.get(focus_config.snapshot_key) is None:
        raise AppError("No saved focus session", exit_code=ERROR_NOT_FOUND)
    store.remove(focus_config.snapshot_key)
    format_success("Saved focus session discarded")


@app.command("presets")
@command_wrapper
def list_presets(
    output: str = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """List the standard session lengths."""
    output = output_format(output)
    format_output(
        [{"minutes": minutes, "label": label} for minutes, label in DURATION_PRESETS.items()],
        output,
    )


@app.command("recommend")
@command_wrapper
def recommend_duration(
    energy: str = typer.Option(None, "--energy", "-e", help="high, medium or low"),
    hour: int = typer.Option(None, "--hour", help="Hour of day (0-23), defaults to now"),
):
    """Suggest a session length for your current energy."""
    if hour is not None and not 0 <= hour <= 23:
        raise AppError("--hour must be between 0 and 23", exit_code=ERROR_INVALID_ARGS)
    if energy is not None and energy not in ("high", "medium", "low"):
        raise AppError("--energy must be high, medium or low", exit_code=ERROR_INVALID_ARGS)

    now = datetime.now()
    if hour is not None:
        now = now.replace(hour=hour)

    tracker = EnergyTracker(_snapshot_store(), now=now)
    if energy is not None:
        tracker.set_energy(energy)

    rec = recommend(tracker.energy, time_of_day(now.hour))
    console.print(
        f"[bold cyan]{rec.duration} minutes[/bold cyan] "
        f"[dim]({tracker.energy} energy, {tracker.period})[/dim]"
    )
    console.print(rec.reasoning)


@app.command("history")
@command_wrapper
def focus_history(
    period: str = typer.Option("week", "--period", "-p", help="week, month or all"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum sessions to show"),
    output: str = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """Show finished focus sessions."""
    output = output_format(output)
    try:
        sessions = _history().filter_period(period)[:limit]
    except ValueError as e:
        raise AppError(str(e), exit_code=ERROR_INVALID_ARGS) from e

    if not sessions:
        format_info("No focus sessions recorded yet")
        return

    format_output(
        [
            {
                "task": s["task_title"],
                "finished": s["completed_at"][:16].replace("T", " "),
                "minutes": s["duration_minutes"],
                "focused": s["total_time_spent"],
                "breaks": s["breaks_used"],
                "completion": f"{s['completion_percentage']}%",
                "score": s["productivity_score"],
            }
            for s in sessions
        ],
        output,
    )


@app.command("stats")
@command_wrapper
def focus_stats(
    output: str = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """Show focus insights for the last seven days."""
    output = output_format(output)
    format_output(_history().weekly_stats().to_dict(), output)


@app.command("export")
@command_wrapper
def export_history(
    fmt: str = typer.Option("json", "--format", "-f", help="json or csv"),
    period: str = typer.Option("week", "--period", "-p", help="week, month or all"),
    output_path: Path = typer.Option(None, "--output", "-o", help="File to write"),
):
    """Export focus sessions as JSON or CSV."""
    if fmt not in ("json", "csv"):
        raise AppError("--format must be json or csv", exit_code=ERROR_INVALID_ARGS)
    try:
        content = _history().export(period, fmt)
    except ValueError as e:
        raise AppError(str(e), exit_code=ERROR_INVALID_ARGS) from e

    if output_path is None:
        print(content)
        return

    output_path.write_text(content, encoding="utf-8")
    format_success(f"Exported focus sessions to {output_path}")


@app.command("clear")
@command_wrapper
def clear_history(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete all focus session history."""
    if not yes and not typer.confirm("Clear all focus session data? This cannot be undone."):
        format_info("Nothing deleted")
        return
    removed = _history().clear()
    format_success(f"Deleted {removed} focus session(s)")
