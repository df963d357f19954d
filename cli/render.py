from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_value(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def _format_change(change: Optional[float]) -> str:
    if change is None or abs(change) <= 1e-6:
        return ""
    arrow = "+" if change > 0 else "-"
    return f" ({arrow}{abs(change):.2f})"


def render_info(payload: Dict[str, Any]) -> None:
    echo_heading("Dataset")
    echo_key_values(
        [
            ("total_records", payload.get("totalRecords")),
            ("start_time", payload.get("startTime")),
            ("end_time", payload.get("endTime")),
            ("attack_count", payload.get("attackCount")),
            ("dropped_records", payload.get("droppedRecords")),
            ("dropped_attacks", payload.get("droppedAttacks")),
        ]
    )
    devices = payload.get("deviceNames") or []
    typer.echo(f"devices ({len(devices)}): {', '.join(devices)}")


def render_record(payload: Dict[str, Any]) -> None:
    record = payload.get("timestampData") or {}
    changes = payload.get("changes") or {}
    echo_heading(f"Record {record.get('index')}")
    echo_key_values(
        [
            ("timestamp", record.get("timestamp")),
            ("label", record.get("label")),
        ]
    )

    attack = payload.get("attackInfo") or {}
    typer.echo()
    echo_heading("Attack")
    if attack.get("isActive"):
        typer.secho(
            f"ACTIVE #{attack.get('attackId')}: {attack.get('description')}",
            fg=typer.colors.RED,
        )
        targets = attack.get("targets") or []
        typer.echo(f"targets: {', '.join(targets) if targets else 'none'}")
    else:
        typer.echo("No attack active.")

    typer.echo()
    echo_heading("Values")
    for device_id, value in (record.get("values") or {}).items():
        typer.echo(f"  {device_id}: {_format_value(value)}{_format_change(changes.get(device_id))}")


def render_history(device_id: str, points: List[Dict[str, Any]]) -> None:
    echo_heading(f"{device_id} history")
    if not points:
        typer.echo("No data available for this period.")
        return
    for point in points:
        typer.echo(f"  {point.get('jsTimestamp')}: {_format_value(point.get('value'))}")


def render_attacks(attacks: List[Dict[str, Any]]) -> None:
    echo_heading("Attacks")
    if not attacks:
        typer.echo("No attacks loaded.")
        return
    for attack in attacks:
        targets = ", ".join(attack.get("targets") or [])
        typer.echo(
            f"  - {attack.get('id')}: {attack.get('startTime')} -> {attack.get('endTime')}"
            f" [{targets}] {attack.get('description')}"
        )
