from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_threshold(threshold: Dict[str, Any] | None) -> str:
    threshold = threshold or {}
    return f"{threshold.get('min')}..{threshold.get('max')}"


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Temperature Reading")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("equipment_id", payload.get("equipment_id")),
            ("temperature", f"{payload.get('temperature')} {payload.get('unit')}"),
            ("threshold", _format_threshold(payload.get("threshold"))),
            ("recorded_at", payload.get("recorded_at")),
        ]
    )
    if payload.get("is_in_range"):
        typer.secho("In range.", fg=typer.colors.GREEN)
    elif payload.get("alert_sent"):
        typer.secho("OUT OF RANGE - alert raised.", fg=typer.colors.RED)
    else:
        typer.secho("OUT OF RANGE - no alert was created.", fg=typer.colors.RED)


def render_alert(payload: Dict[str, Any]) -> None:
    echo_heading("Alert")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("equipment_id", payload.get("equipment_id")),
            ("status", payload.get("status")),
            ("direction", payload.get("direction")),
            ("severity", payload.get("severity")),
            ("temperature", payload.get("temperature")),
            ("threshold", _format_threshold(payload.get("threshold"))),
            ("acknowledged_by", payload.get("acknowledged_by")),
            ("resolved_by", payload.get("resolved_by")),
            ("resolution", payload.get("resolution")),
        ]
    )
    notes = payload.get("notes") or []
    if notes:
        typer.echo("notes:")
        for note in notes:
            typer.echo(f"  - [{note.get('type')}] {note.get('author')}: {note.get('message')}")


def render_alerts(payload: Dict[str, Any]) -> None:
    summary = payload.get("summary") or {}
    echo_heading("Alert Summary")
    echo_key_values(
        [
            ("active", summary.get("active", 0)),
            ("acknowledged", summary.get("acknowledged", 0)),
            ("resolved", summary.get("resolved", 0)),
        ]
    )

    alerts = payload.get("alerts") or []
    typer.echo()
    echo_heading("Alerts")
    if not alerts:
        typer.echo("No alerts match.")
        return
    for alert in alerts:
        typer.echo(
            f"  - {alert.get('id')} {alert.get('equipment_id')} "
            f"{alert.get('temperature')} ({alert.get('direction')}) "
            f"{alert.get('status')}/{alert.get('severity')}"
        )


def render_history(payload: Dict[str, Any]) -> None:
    echo_heading(f"Equipment {payload.get('equipment_id')}")
    trends = payload.get("trends") or {}
    latest = trends.get("latest") or {}
    echo_key_values(
        [
            ("readings", len(payload.get("readings") or [])),
            ("average", trends.get("average")),
            ("min", trends.get("min")),
            ("max", trends.get("max")),
            ("latest", latest.get("temperature")),
        ]
    )
