"""Rich table builders for reports, the error log and settings."""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from opencode_diag.config.settings import CHECK_FLAGS, DiagnosticSettings
from opencode_diag.core.processes import ProcessSample
from opencode_diag.models.error_log import ErrorLog
from opencode_diag.models.report import SLOTS, DiagnosticReport
from opencode_diag.output.themes import styled_diagnosis, styled_status


def report_table(
    report: DiagnosticReport,
    settings: DiagnosticSettings | None = None,
    running: bool = False,
) -> Table:
    """One row per check.

    With settings, enabled checks without a result show their placeholder
    and disabled checks are hidden.
    """
    title = "OpenCode Diagnostics"
    if report.timestamp:
        title += f" [dim]({report.timestamp})[/dim]"
    table = Table(title=title, expand=True)
    table.add_column("Status", width=6, no_wrap=True)
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Details")

    for slot in SLOTS:
        check = report.get(slot.attr)
        if check is None:
            if settings is None or not settings.is_enabled(slot.flag):
                continue
            pending = "[dim]...[/dim]" if running else "[dim]--[/dim]"
            table.add_row(pending, slot.check_name, Text(slot.placeholder, style="dim"))
            continue
        details = Text(check.details)
        if check.message:
            details.append(f'\nMessage: "{check.message}"', style="dim")
        table.add_row(styled_status(check.status), check.name, details)
    return table


def diagnosis_panel(report: DiagnosticReport) -> Panel:
    if report.diagnosis:
        body = styled_diagnosis(report.diagnosis, report.has_issues)
    else:
        body = Text("No diagnostics run yet.", style="dim")
    return Panel(body, title="[bold]Diagnosis[/bold]", border_style="blue")


def error_log_table(error_log: ErrorLog) -> Table:
    table = Table(title=f"Error Log ({len(error_log)})", expand=True)
    table.add_column("Check", style="red", no_wrap=True)
    table.add_column("Times (newest first)", style="dim")
    if error_log.is_empty():
        table.add_row("[dim]No errors recorded[/dim]", "")
    for entry in error_log.entries:
        table.add_row(Text(entry.name), entry.format_times())
    return table


def dashboard(
    report: DiagnosticReport,
    settings: DiagnosticSettings,
    error_log: ErrorLog,
    status_line: str,
    running: bool = False,
) -> Group:
    footer = Text(status_line, style="dim")
    return Group(
        report_table(report, settings=settings, running=running),
        diagnosis_panel(report),
        error_log_table(error_log),
        footer,
    )


def settings_table(settings: DiagnosticSettings) -> Table:
    table = Table(title="Settings", show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    for flag in CHECK_FLAGS:
        enabled = settings.is_enabled(flag)
        table.add_row(flag, "[green]on[/green]" if enabled else "[dim]off[/dim]")
    table.add_row("auto_refresh", "[green]on[/green]" if settings.auto_refresh else "[dim]off[/dim]")
    table.add_row("refresh_interval", settings.format_interval())
    table.add_row("ui_scale", settings.format_scale())
    table.add_row("enabled checks", str(settings.enabled_count()))
    return table


def process_table(processes: list[ProcessSample], title: str) -> Table:
    table = Table(title=title, expand=False)
    table.add_column("PID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Memory (MB)", justify="right", style="bold")
    for p in processes:
        table.add_row(str(p.pid), Text(p.name), str(p.memory_mb))
    return table
