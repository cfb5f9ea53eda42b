"""Sync progress simulation commands.

Runs a scripted sync scenario through ``ProgressSyncSimulator`` and renders
the operation as a rich progress bar.
"""

import uuid

import typer
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from joidu_focus.services.config_service import get_config_service
from joidu_focus.services.progress_sync import (
    SYNC_SCENARIOS,
    ProgressSyncSimulator,
    SyncOperation,
    simulate_sync,
)
from joidu_focus.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from joidu_focus.utils.ui.console import get_console
from joidu_focus.utils.ui.formatters import format_output, format_success

from .decorators import AppError, command_wrapper
from .utils import OUTPUT_HELP, output_format

app = typer.Typer(help="Simulated sync progress")
console = get_console()


@app.command("scenarios")
@command_wrapper
def list_scenarios(
    output: str = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
):
    """List the built-in sync scenarios."""
    output = output_format(output)
    format_output(
        [
            {
                "scenario": name,
                "duration_ms": scenario.duration_ms,
                "message": scenario.message,
            }
            for name, scenario in SYNC_SCENARIOS.items()
        ],
        output,
    )


@app.command("simulate")
@command_wrapper
async def simulate(
    scenario: str = typer.Argument("manual_sync", help="Scenario name"),
    duration_ms: int = typer.Option(
        None, "--duration", "-d", help="Override the scenario duration (ms)"
    ),
):
    """Run a sync scenario with a live progress bar.

    Examples:
        joidu sync simulate
        joidu sync simulate backup_sync --duration 1000
    """
    if scenario not in SYNC_SCENARIOS:
        raise AppError(
            f"Unknown scenario '{scenario}'. Available: {', '.join(SYNC_SCENARIOS)}",
            exit_code=ERROR_NOT_FOUND,
        )
    if duration_ms is not None and duration_ms < 0:
        raise AppError("--duration must not be negative", exit_code=ERROR_INVALID_ARGS)

    sync_config = get_config_service().config.sync
    preset = SYNC_SCENARIOS[scenario]
    simulator = ProgressSyncSimulator(removal_delay=sync_config.removal_delay)
    operation_id = f"{scenario}-{uuid.uuid4().hex[:8]}"

    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as bar:
        task_id = bar.add_task(preset.message, total=100)

        def on_change(operations: list[SyncOperation]) -> None:
            for op in operations:
                if op.operation_id == operation_id:
                    bar.update(task_id, completed=op.progress)

        unsubscribe = simulator.subscribe(on_change)
        try:
            await simulate_sync(
                simulator,
                operation_id,
                preset.message,
                preset.duration_ms if duration_ms is None else duration_ms,
                tick_ms=sync_config.tick_ms,
            )
        finally:
            unsubscribe()

    format_success(f"{scenario} finished")
