from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _tile_label(tile: Dict[str, Any]) -> str:
    unit = tile.get("unit")
    return f"{tile.get('label')} ({unit})" if unit else str(tile.get("label"))


def render_kpis(payload: Dict[str, Any]) -> None:
    kpi = payload.get("kpi") or {}
    echo_heading("Latest Reading")
    echo_key_values(
        [
            ("updated", payload.get("updated")),
            ("mode", payload.get("mode")),
            ("device", kpi.get("device")),
            ("time", kpi.get("time")),
        ]
    )
    echo_key_values((_tile_label(tile), tile.get("value")) for tile in kpi.get("tiles") or [])
    echo_key_values(
        [
            ("RSSI", kpi.get("signal_strength")),
            ("SNR", kpi.get("signal_noise_ratio")),
        ]
    )


def render_summary(payload: Dict[str, Any]) -> None:
    summary = payload.get("summary") or {}
    echo_heading("Summary")
    if summary.get("empty", True):
        typer.echo(summary.get("message") or "No data available.")
        return
    for metric in summary.get("metrics") or []:
        typer.echo(
            f"  - {metric.get('label')}: avg {metric.get('avg_text')}"
            f" min {metric.get('min_text')} max {metric.get('max_text')}"
        )


def render_table(payload: Dict[str, Any], limit: int = 10) -> None:
    rows = (payload.get("table") or [])[:limit]
    echo_heading("Readings")
    if not rows:
        typer.echo("No readings.")
        return
    for row in rows:
        values = " ".join(str(value) for value in (row.get("values") or {}).values())
        typer.echo(f"  {row.get('time')}  {row.get('device')}  {values}")


def render_snapshot(payload: Dict[str, Any], rows: int = 10) -> None:
    filters = payload.get("filters") or {}
    echo_heading("Dashboard")
    echo_key_values(
        [
            ("device_filter", filters.get("device") or "all"),
            ("start_date", filters.get("start_date") or "-"),
            ("end_date", filters.get("end_date") or "-"),
            ("points", filters.get("points")),
            ("readings", payload.get("reading_count")),
            ("devices", ", ".join(payload.get("devices") or []) or "-"),
        ]
    )
    typer.echo()
    render_kpis(payload)
    typer.echo()
    render_summary(payload)
    typer.echo()
    render_table(payload, limit=rows)
