"""ocdiag watch - Live dashboard with auto-refresh."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live

from opencode_diag.cli.options import SettingsFileOption
from opencode_diag.config.settings import DiagnosticSettings
from opencode_diag.core.session import DiagnosticSession
from opencode_diag.output.tables import dashboard

app = typer.Typer()
console = Console()

FRAME_SECS = 1.0


def _render(session: DiagnosticSession):
    footer = session.status_text
    if session.timing_text:
        footer += f"  {session.timing_text}"
    return dashboard(
        session.report,
        session.settings,
        session.error_log,
        footer,
        running=session.is_running,
    )


@app.callback(invoke_without_command=True)
def watch(
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", min=1, help="Refresh interval in seconds (default: from settings)",
    ),
    once: bool = typer.Option(False, "--once", help="Stop after the first run completes"),
    settings_file: Optional[Path] = SettingsFileOption,
) -> None:
    """Re-run diagnostics on an interval and show a live dashboard."""
    settings = DiagnosticSettings.load(settings_file)
    if not once:
        settings.auto_refresh = True
    if interval is not None:
        settings.refresh_interval_secs = interval

    session = DiagnosticSession(settings=settings)
    session.request_run()

    try:
        with Live(_render(session), console=console, refresh_per_second=4) as live:
            while True:
                completed = session.poll()
                live.update(_render(session))
                if once and completed:
                    break
                time.sleep(FRAME_SECS)
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
