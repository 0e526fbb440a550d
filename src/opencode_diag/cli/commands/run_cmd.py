"""ocdiag run - Run diagnostics once."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from opencode_diag.cli.options import OutputOption, SettingsFileOption
from opencode_diag.config.settings import DiagnosticSettings
from opencode_diag.core.engine import run_with_settings
from opencode_diag.models import CheckStatus
from opencode_diag.output.formatters import output_report

app = typer.Typer()
console = Console(stderr=True)


@app.callback(invoke_without_command=True)
def run(
    output: str = OutputOption,
    settings_file: Optional[Path] = SettingsFileOption,
) -> None:
    """Run the enabled checks and print the report."""
    settings = DiagnosticSettings.load(settings_file)
    if settings.enabled_count() == 0:
        console.print("[yellow]All checks are disabled. Enable some with 'ocdiag settings enable'.[/yellow]")

    with console.status(f"[bold cyan]Running {settings.enabled_count()} checks…"):
        report = run_with_settings(settings)

    output_report(report, output)

    if report.worst_status() is CheckStatus.ERROR:
        raise typer.Exit(code=1)
