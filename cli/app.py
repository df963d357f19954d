from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_attacks, render_history, render_info, render_record


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


class HistoryModeOption(str, Enum):
    records = "records"
    time = "time"


app = typer.Typer(
    help="Utilities for browsing the SWaT playback service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Playback API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("info")
def info_command(ctx: typer.Context) -> None:
    """Show the loaded dataset summary."""
    state = _get_state(ctx)
    render_info(state.client.get_info())


@app.command("record")
def record_command(
    ctx: typer.Context,
    index: int = typer.Argument(..., min=0, help="Record index."),
) -> None:
    """Show one record with its changes and attack status."""
    state = _get_state(ctx)
    render_record(state.client.get_record(index))


@app.command("find")
def find_command(
    ctx: typer.Context,
    time: str = typer.Argument(..., help='Time as "DD/MM/YYYY HH:MM:SS [AM|PM]".'),
    show: bool = typer.Option(False, "--show/--no-show", help="Also print the matched record."),
) -> None:
    """Find the record closest to a point in time."""
    state = _get_state(ctx)
    match = state.client.find_index(time)
    typer.secho(
        f"Closest record: index={match.get('index')} timestamp={match.get('timestamp')}",
        fg=typer.colors.GREEN,
    )
    if show:
        typer.echo()
        render_record(state.client.get_record(match["index"]))


@app.command("history")
def history_command(
    ctx: typer.Context,
    device_id: str = typer.Argument(..., help="Device identifier, e.g. FIT101."),
    end_index: int = typer.Option(..., "--end-index", "-e", help="Last record index to include."),
    seconds: int = typer.Option(60, "--seconds", "-s", help="Window length."),
    mode: HistoryModeOption = typer.Option(
        HistoryModeOption.records,
        "--mode",
        help="Count the window in records (one per second) or in elapsed time.",
    ),
) -> None:
    """Print the readings of a device leading up to an index."""
    state = _get_state(ctx)
    points = state.client.get_history(device_id, end_index, seconds, mode=mode.value)
    render_history(device_id, points)


@app.command("attacks")
def attacks_command(ctx: typer.Context) -> None:
    """List the attack catalog."""
    state = _get_state(ctx)
    render_attacks(state.client.list_attacks())
