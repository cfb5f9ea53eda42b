"""Shared rich consoles for command output."""

from functools import lru_cache

from rich.console import Console


@lru_cache(maxsize=2)
def get_console(highlight: bool = True) -> Console:
    """Get a Rich Console instance for consistent output formatting."""
    return Console(highlight=highlight)


def set_color(enabled: bool) -> None:
    """Switch colour on or off for every shared console.

    Rich reads ``no_color`` at render time, so consoles already handed out to
    command modules pick the change up.
    """
    for highlight in (True, False):
        get_console(highlight).no_color = not enabled
