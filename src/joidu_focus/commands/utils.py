"""Helpers shared by the command modules."""

from joidu_focus.services.config_service import get_config_service
from joidu_focus.utils.exit_codes import ERROR_INVALID_ARGS
from joidu_focus.utils.ui.formatters import resolve_output_format

from .decorators import AppError

OUTPUT_HELP = "table, json or yaml (defaults to output.format)"


def output_format(output: str | None) -> str:
    """Resolve ``--output`` against the configured default format."""
    try:
        return resolve_output_format(output, get_config_service().config.output.format)
    except ValueError as e:
        raise AppError(str(e), exit_code=ERROR_INVALID_ARGS) from e
