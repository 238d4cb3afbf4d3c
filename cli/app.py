from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_kpis, render_snapshot


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the water quality dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _parse_day(value: Optional[str], option: str) -> Optional[str]:
    if value is None:
        return None
    candidate = value.strip()
    if not candidate or candidate.lower() == "all":
        return ""
    try:
        return date.fromisoformat(candidate).isoformat()
    except ValueError as exc:
        raise typer.BadParameter(f"{option} must be YYYY-MM-DD.") from exc


# Quick day ranges: days back from today, None clears both bounds.
RANGE_PRESETS: Dict[str, Optional[int]] = {"all": None, "today": 0, "7d": 6, "30d": 29}


def _today() -> date:
    return date.today()


def _preset_days(name: str) -> Tuple[str, str]:
    key = name.strip().lower()
    if key not in RANGE_PRESETS:
        choices = ", ".join(RANGE_PRESETS)
        raise typer.BadParameter(f"--range must be one of: {choices}.")
    days_back = RANGE_PRESETS[key]
    if days_back is None:
        return "", ""
    today = _today()
    return (today - timedelta(days=days_back)).isoformat(), today.isoformat()


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between refreshes in watch mode.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        request_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("show")
def show_command(
    ctx: typer.Context,
    device: Optional[str] = typer.Option(
        None, "--device", "-d", help="Only show this device ('' or 'all' for every device)."
    ),
    start_date: Optional[str] = typer.Option(
        None, "--start-date", help="First day to include (YYYY-MM-DD, 'all' to clear)."
    ),
    end_date: Optional[str] = typer.Option(
        None, "--end-date", help="Last day to include (YYYY-MM-DD, 'all' to clear)."
    ),
    points: Optional[int] = typer.Option(
        None, "--points", "-n", min=1, help="Chart and summary window size."
    ),
    range_: Optional[str] = typer.Option(
        None, "--range", "-r", help="Quick day range: all, today, 7d or 30d."
    ),
    rows: Optional[int] = typer.Option(
        None, "--rows", min=0, help="Table rows to print (defaults to CLI_TABLE_ROWS or 10)."
    ),
) -> None:
    """Show the dashboard, optionally changing its filters first."""
    state = _get_state(ctx)
    if range_ is not None and (start_date is not None or end_date is not None):
        raise typer.BadParameter("--range cannot be combined with --start-date or --end-date.")
    if range_ is not None:
        start, end = _preset_days(range_)
    else:
        start = _parse_day(start_date, "--start-date")
        end = _parse_day(end_date, "--end-date")

    if all(value is None for value in (device, start, end, points)):
        payload = state.client.get_dashboard()
    else:
        current: Dict[str, Any] = dict(state.client.get_dashboard().get("filters") or {})
        if device is not None:
            current["device"] = "" if device.lower() == "all" else device
        if start is not None:
            current["start_date"] = start or None
        if end is not None:
            current["end_date"] = end or None
        if points is not None:
            current["points"] = points
        payload = state.client.update_filters(current)

    render_snapshot(payload, rows=state.config.table_rows if rows is None else rows)


@app.command("devices")
def devices_command(ctx: typer.Context) -> None:
    """List the devices seen in the latest refresh."""
    state = _get_state(ctx)
    devices = state.client.get_devices()
    if not devices:
        typer.echo("No devices reported yet.")
        return
    for device in devices:
        typer.echo(device)


@app.command("export")
def export_command(
    ctx: typer.Context,
    start: Optional[str] = typer.Option(None, "--start", help="Start instant (ISO-8601)."),
    end: Optional[str] = typer.Option(None, "--end", help="End instant (ISO-8601)."),
    device: Optional[str] = typer.Option(None, "--device", "-d", help="Device to export."),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        writable=True,
        help="Destination file (defaults to the service-provided filename).",
    ),
) -> None:
    """Download cached readings as CSV."""
    state = _get_state(ctx)
    filename, content = state.client.export_csv(start=start, end=end, device=device)
    destination = output or Path(filename)
    destination.write_text(content, encoding="utf-8")
    row_count = max(len(content.splitlines()) - 1, 0)
    typer.secho(f"Wrote {row_count} rows to {destination}", fg=typer.colors.GREEN)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    iterations: int = typer.Option(
        0, "--iterations", "-i", min=0, help="Stop after this many refreshes (0 = forever)."
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Override the refresh interval.",
    ),
) -> None:
    """Print the latest reading on every refresh."""
    state = _get_state(ctx)
    interval = poll_interval if poll_interval is not None else state.config.poll_interval
    count = 0
    while True:
        render_kpis(state.client.get_dashboard())
        count += 1
        if iterations and count >= iterations:
            return
        typer.echo()
        time.sleep(interval)
