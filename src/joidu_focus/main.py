"""Main entry point for the Joidu Focus CLI."""

import typer

from joidu_focus import __version__
from joidu_focus.commands import config, focus, sync
from joidu_focus.services.config_service import get_config_service
from joidu_focus.utils.exit_codes import ERROR_GENERAL
from joidu_focus.utils.logger import log_file_path
from joidu_focus.utils.typer_helpers import SuggestingGroup
from joidu_focus.utils.ui.console import get_console, set_color
from joidu_focus.utils.ui.formatters import format_error

app = typer.Typer(
    name="joidu",
    cls=SuggestingGroup,
    help="Focus sessions and sync progress from the terminal",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(focus.app, name="focus", help="Focus timer sessions")
app.add_typer(sync.app, name="sync", help="Simulated sync progress")
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def load_settings() -> None:
    """Focus sessions and sync progress from the terminal."""
    try:
        settings = get_config_service().config
    except RuntimeError as e:
        format_error(str(e))
        raise typer.Exit(code=ERROR_GENERAL) from e
    set_color(settings.output.color)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Joidu Focus[/bold] version [cyan]{__version__}[/cyan]")
    console.print(f"Log file: {log_file_path()}", highlight=False, soft_wrap=True)


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
