"""Rich renderables for the focus timer and session summaries."""

from rich.align import Align
from rich.console import Console, Group
from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from .hyperfocus import BreakSuggestion
from .session import FocusSession
from .timer import TimerPhase, TimerState, format_time, progress

_HEADERS: dict[str, tuple[str, str]] = {
    "idle": ("Joidu Focus", "cyan"),
    "running": ("Joidu Focus", "cyan"),
    "paused": ("PAUSED", "yellow"),
    "on_break": ("ON BREAK", "green"),
    "completed": ("COMPLETED", "green"),
    "cancelled": ("CANCELLED", "red"),
}

_URGENCY_STYLES: dict[str, str] = {
    "gentle": "green",
    "strong": "yellow",
    "urgent": "red",
    "emergency": "bold red",
}

_HINTS: dict[str, str] = {
    "running": "Press 'p' to pause  •  'b' for a break  •  'q' to quit",
    "paused": "Press 'r' to resume  •  'q' to quit",
    "on_break": "Press 'e' to end the break  •  'q' to quit",
}


def progress_bar(percentage: float, width: int = 40) -> str:
    """Text progress bar, e.g. '▓▓▓░░░'."""
    percentage = min(100.0, max(0.0, percentage))
    filled = int(width * percentage / 100)
    return "▓" * filled + "░" * (width - filled)


class TimerDisplay:
    """Builds the full-screen timer layout from a ``TimerState``."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def create_layout(
        self,
        state: TimerState,
        phase: TimerPhase | None = None,
        suggestion: BreakSuggestion | None = None,
    ) -> Layout:
        """Create the timer layout with all components."""
        phase = phase or state.phase
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        title, color = _HEADERS[phase]
        header_text = Text(title, style=f"bold {color}", justify="center")
        layout["header"].update(Align.center(header_text, vertical="middle"))
        layout["body"].update(Align.center(self.create_body(state, phase, suggestion), vertical="middle"))
        layout["footer"].update(
            Align.center(Text(_HINTS.get(phase, ""), style="dim", justify="center"), vertical="middle")
        )
        return layout

    def create_body(
        self,
        state: TimerState,
        phase: TimerPhase,
        suggestion: BreakSuggestion | None = None,
    ) -> Group:
        components = []

        session = state.current_session
        if session is not None and session.task_title:
            components.append(Text(session.task_title[:50], style="bold white", justify="center"))
            components.append(Text(""))

        remaining = state.time_remaining
        if phase == "paused":
            timer_color = "yellow"
        elif phase == "on_break":
            timer_color = "green"
        elif remaining < 60:
            timer_color = "red"
        elif remaining < 300:
            timer_color = "yellow"
        else:
            timer_color = "cyan"

        components.append(Text(format_time(remaining), style=f"bold {timer_color}", justify="center"))
        components.append(Text(""))

        if phase != "on_break":
            pct = progress(state)
            components.append(
                Text(f"{progress_bar(pct)}  {int(pct)}%", style="dim", justify="center")
            )

        if session is not None and session.breaks:
            components.append(Text(""))
            components.append(
                Text(f"Breaks taken: {len(session.breaks)}", style="dim", justify="center")
            )

        if suggestion is not None and phase == "running":
            style = _URGENCY_STYLES.get(suggestion.urgency, "cyan")
            ideas = ", ".join(f"{a.label} ({a.duration_minutes} min)" for a in suggestion.activities)
            components.append(Text(""))
            components.append(Text(suggestion.title, style=f"bold {style}", justify="center"))
            components.append(Text(suggestion.message, style=style, justify="center"))
            if ideas:
                components.append(Text(f"Ideas: {ideas}", style="dim", justify="center"))

        return Group(*components)


def show_completion_message(session: FocusSession, console: Console | None = None):
    """Show a message after a session finishes."""
    console = console or Console()

    panel = Panel(
        f"""[bold green]Focus Session Complete![/bold green]

Task: {session.task_title or "N/A"}
Duration: {session.duration_minutes} minutes
Breaks: {len(session.breaks)}

Session saved to history.""",
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)


def show_stopped_message(session: FocusSession, time_remaining: int, console: Console | None = None):
    """Show a message when a session is cancelled early."""
    console = console or Console()

    elapsed = max(0, session.total_seconds - time_remaining)
    panel = Panel(
        f"""[yellow]Session Stopped[/yellow]

Task: {session.task_title or "N/A"}
Time focused: {elapsed // 60} minutes
Remaining: {format_time(time_remaining)}

Partial session saved to history.""",
        border_style="yellow",
        padding=(1, 2),
    )
    console.print(panel)
