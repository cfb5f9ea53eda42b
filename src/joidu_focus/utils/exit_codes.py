"""Process exit codes used by ``joidu`` commands.

Scripts driving the CLI can branch on these instead of parsing messages.
"""

SUCCESS = 0
ERROR_GENERAL = 1
ERROR_INVALID_ARGS = 2  # bad option value, failed validation
ERROR_NOT_FOUND = 5  # no saved session, unknown scenario or config key
ERROR_CONFLICT = 7  # a focus session is already saved

EXIT_CODE_NAMES = {
    value: name
    for name, value in list(globals().items())
    if name == "SUCCESS" or name.startswith("ERROR_")
}


def get_exit_code_name(code: int) -> str:
    """Symbolic name of ``code``, used in log lines."""
    return EXIT_CODE_NAMES.get(code, f"UNKNOWN({code})")
