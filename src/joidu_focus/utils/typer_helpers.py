"""Typer helper utilities."""

from difflib import get_close_matches

import typer
from typer.core import TyperGroup

from joidu_focus.utils.ui.console import get_console
from joidu_focus.utils.ui.formatters import format_error


def suggest_commands(attempted: str, available: list[str], limit: int = 3) -> list[str]:
    """Return the registered command names closest to ``attempted``."""
    return get_close_matches(attempted, available, n=limit, cutoff=0.6)


class SuggestingGroup(TyperGroup):
    """Command group that answers a mistyped command with suggestions."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except Exception as e:
            suggestions = suggest_commands(args[0], sorted(self.commands)) if args else []
            if not suggestions:
                raise

            console = get_console()
            format_error(f'unknown command "{args[0]}" for "{ctx.info_name}"')
            console.print()
            heading = "Did you mean this?" if len(suggestions) == 1 else "Did you mean one of these?"
            console.print(f"[yellow]{heading}[/yellow]")
            for suggestion in suggestions:
                console.print(f"        {suggestion}")
            raise typer.Exit(1) from e
