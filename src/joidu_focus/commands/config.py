"""Configuration management commands."""

import typer

from joidu_focus.services.config_service import get_config_service
from joidu_focus.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from joidu_focus.utils.ui.console import get_console
from joidu_focus.utils.ui.formatters import format_output, format_success

from .decorators import AppError, command_wrapper
from .utils import OUTPUT_HELP, output_format

app = typer.Typer(help="Configuration management commands")
console = get_console()


@app.command("show")
@command_wrapper
def show_config(
    output: str = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """View current configuration."""
    output = output_format(output)
    config = get_config_service().config
    if output == "table":
        # Flatten sections so every key shows up as a dotted row
        rows = {
            f"{section}.{key}": value
            for section, values in config.model_dump().items()
            for key, value in values.items()
        }
        format_output(rows, output)
    else:
        format_output(config.model_dump(), output)


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., focus.default_duration)"),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_service().get_value(key)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", exit_code=ERROR_NOT_FOUND) from e
    console.print(value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., focus.default_duration)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed_value: str | int | bool = value
    if value.lower() in ("true", "false"):
        parsed_value = value.lower() == "true"
    elif value.isdigit():
        parsed_value = int(value)

    try:
        get_config_service().set_value(key, parsed_value)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", exit_code=ERROR_NOT_FOUND) from e
    except ValueError as e:
        raise AppError(str(e), exit_code=ERROR_INVALID_ARGS) from e

    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper
def reset_config(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes and not typer.confirm("Reset the entire configuration?"):
        console.print("[yellow]Cancelled[/yellow]")
        return
    get_config_service().reset_config()
    format_success("Configuration reset to defaults")
