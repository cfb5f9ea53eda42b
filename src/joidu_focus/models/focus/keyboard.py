"""Non-blocking keyboard input and key bindings for the live timer."""

import sys
from typing import Literal, Optional

from .engine import FocusTimerEngine

KeyAction = Literal["pause", "resume", "break", "end_break", "quit"]

KEY_BINDINGS: dict[str, KeyAction] = {
    "p": "pause",
    "r": "resume",
    "b": "break",
    "e": "end_break",
    "q": "quit",
    "s": "quit",
}


class KeyboardHandler:
    """Reads single keypresses from a POSIX terminal without blocking."""

    def __init__(self):
        self.fd = sys.stdin.fileno()
        self.old_settings = None
        self._setup()

    def _setup(self):
        """Put the terminal in cbreak mode."""
        try:
            import termios
            import tty

            self.old_settings = termios.tcgetattr(self.fd)
            tty.setcbreak(self.fd)
        except Exception:
            # Not a TTY (pipes, CI) or not POSIX
            self.old_settings = None

    def get_key(self) -> Optional[str]:
        """Return the pressed key in lower case, or None."""
        try:
            import select

            if select.select([sys.stdin], [], [], 0)[0]:
                return sys.stdin.read(1).lower()
        except (OSError, ValueError):
            pass
        return None

    def stop(self):
        """Restore terminal settings."""
        if self.old_settings is None:
            return
        try:
            import termios

            termios.tcsetattr(self.fd, termios.TCSADRAIN, self.old_settings)
        except Exception:
            pass


def apply_key(
    engine: FocusTimerEngine,
    key: Optional[str],
    break_minutes: int,
    allow_breaks: bool = True,
) -> Optional[KeyAction]:
    """Translate a keypress into an engine operation.

    Returns the action taken. Keys that do not apply to the current phase are
    passed to the engine anyway, which ignores them.
    """
    if key is None:
        return None

    action = KEY_BINDINGS.get(key)
    if action == "pause":
        engine.pause_timer()
    elif action == "resume":
        engine.resume_timer()
    elif action == "break":
        if not allow_breaks:
            return None
        engine.start_break(break_minutes)
    elif action == "end_break":
        engine.end_break()
    elif action == "quit":
        engine.cancel_timer()
    return action
