from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_alert, render_alerts, render_history, render_reading


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Operator utilities for the HACCP temperature compliance service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("record")
def record_command(
    ctx: typer.Context,
    location_id: str = typer.Option(..., "--location", "-l", help="Location identifier."),
    equipment_id: str = typer.Option(..., "--equipment", "-e", help="Equipment identifier."),
    temperature: float = typer.Option(..., "--temperature", "-t", help="Measured temperature."),
    recorded_by: str = typer.Option(..., "--by", help="Person or sensor recording the reading."),
    equipment_type: Optional[str] = typer.Option(
        None, "--type", help="Equipment type, e.g. freezer, refrigerator, hotHold."
    ),
    unit: Optional[str] = typer.Option(None, "--unit", help="Temperature unit (F or C)."),
    notes: Optional[str] = typer.Option(None, "--notes", help="Free-text notes."),
    threshold_min: Optional[float] = typer.Option(None, "--min", help="Override minimum threshold."),
    threshold_max: Optional[float] = typer.Option(None, "--max", help="Override maximum threshold."),
) -> None:
    """Record a temperature reading."""
    state = _get_state(ctx)
    payload = state.client.record_reading(
        {
            "location_id": location_id,
            "equipment_id": equipment_id,
            "equipment_type": equipment_type,
            "temperature": temperature,
            "unit": unit,
            "recorded_by": recorded_by,
            "notes": notes,
            "threshold_min_override": threshold_min,
            "threshold_max_override": threshold_max,
        }
    )
    render_reading(payload)


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    location_id: Optional[str] = typer.Option(None, "--location", "-l", help="Filter by location."),
    equipment_id: Optional[str] = typer.Option(None, "--equipment", "-e", help="Filter by equipment."),
    status: Optional[str] = typer.Option(
        None, "--status", "-s", help="Filter by status: active, acknowledged or resolved."
    ),
    period: Optional[str] = typer.Option(None, "--period", "-p", help="Window such as 24h, 7d, 30d."),
) -> None:
    """List alerts with a per-status summary."""
    state = _get_state(ctx)
    payload = state.client.list_alerts(
        {
            "location_id": location_id,
            "equipment_id": equipment_id,
            "status": status,
            "period": period,
        }
    )
    render_alerts(payload)


@app.command("ack")
def acknowledge_command(
    ctx: typer.Context,
    alert_id: str = typer.Argument(..., help="Alert identifier."),
    acknowledged_by: str = typer.Option(..., "--by", help="Operator acknowledging the alert."),
    note: Optional[str] = typer.Option(None, "--note", "-n", help="Optional note."),
) -> None:
    """Acknowledge an active alert."""
    state = _get_state(ctx)
    render_alert(state.client.acknowledge_alert(alert_id, acknowledged_by, note))


@app.command("resolve")
def resolve_command(
    ctx: typer.Context,
    alert_id: str = typer.Argument(..., help="Alert identifier."),
    resolved_by: str = typer.Option(..., "--by", help="Operator resolving the alert."),
    resolution: Optional[str] = typer.Option(None, "--resolution", "-r", help="Corrective action taken."),
    note: Optional[str] = typer.Option(None, "--note", "-n", help="Optional note."),
) -> None:
    """Resolve an alert."""
    state = _get_state(ctx)
    render_alert(state.client.resolve_alert(alert_id, resolved_by, resolution, note))


@app.command("history")
def history_command(
    ctx: typer.Context,
    equipment_id: str = typer.Argument(..., help="Equipment identifier."),
    period: Optional[str] = typer.Option(None, "--period", "-p", help="Window such as 24h, 7d, 30d."),
) -> None:
    """Show temperature trends for one piece of equipment."""
    state = _get_state(ctx)
    render_history(state.client.equipment_history(equipment_id, period))
