"""ocdiag settings - Show or change the persisted settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from opencode_diag.cli.options import SettingsFileOption
from opencode_diag.config.settings import (
    CHECK_FLAGS,
    REFRESH_PRESETS,
    SCALE_PRESETS,
    DiagnosticSettings,
    SettingsError,
    settings_path,
)
from opencode_diag.output.tables import settings_table

app = typer.Typer()
console = Console()

# Short names accepted on the command line.
CHECK_ALIASES: dict[str, str] = {
    "cpu": "check_cpu_ram",
    "ram": "check_cpu_ram",
    "gpu": "check_gpu",
    "internet": "check_internet",
    "claude": "check_claude",
    "openai": "check_openai",
    "google": "check_google_ai",
    "opencode": "check_opencode",
    "terminals": "check_terminals",
}


def _resolve_flag(check: str) -> str:
    key = check.lower()
    if key in CHECK_FLAGS:
        return key
    if key in CHECK_ALIASES:
        return CHECK_ALIASES[key]
    names = ", ".join(sorted(CHECK_ALIASES))
    console.print(f"[red]Unknown check '{escape(check)}'.[/red] Choose from: {names}")
    raise typer.Exit(code=2)


def _save(settings: DiagnosticSettings, path: Path | None) -> None:
    try:
        settings.save(path)
    except SettingsError as e:
        console.print(f"[red]Settings not saved:[/red] {e}")
        return
    console.print(settings_table(settings))


@app.command("show")
def show(settings_file: Optional[Path] = SettingsFileOption) -> None:
    """Show the current settings."""
    console.print(settings_table(DiagnosticSettings.load(settings_file)))


@app.command("path")
def path() -> None:
    """Print the settings file location."""
    console.print(str(settings_path()))


@app.command("enable")
def enable(
    checks: list[str] = typer.Argument(..., help="Checks to enable, e.g. gpu openai"),
    settings_file: Optional[Path] = SettingsFileOption,
) -> None:
    """Enable one or more checks."""
    settings = DiagnosticSettings.load(settings_file)
    for check in checks:
        settings.set_flag(_resolve_flag(check), True)
    _save(settings, settings_file)


@app.command("disable")
def disable(
    checks: list[str] = typer.Argument(..., help="Checks to disable"),
    settings_file: Optional[Path] = SettingsFileOption,
) -> None:
    """Disable one or more checks."""
    settings = DiagnosticSettings.load(settings_file)
    for check in checks:
        settings.set_flag(_resolve_flag(check), False)
    _save(settings, settings_file)


@app.command("interval")
def interval(
    preset: str = typer.Argument(..., help="One of: " + ", ".join(label for _, label in REFRESH_PRESETS) + ", or 'off'"),
    settings_file: Optional[Path] = SettingsFileOption,
) -> None:
    """Set the auto-refresh interval, or turn auto-refresh off."""
    settings = DiagnosticSettings.load(settings_file)
    if preset == "off":
        settings.auto_refresh = False
    else:
        labels = [label for _, label in REFRESH_PRESETS]
        if preset not in labels:
            console.print(f"[red]Unknown interval '{escape(preset)}'.[/red] Choose from: {', '.join(labels)}")
            raise typer.Exit(code=2)
        settings.set_preset(labels.index(preset))
        settings.auto_refresh = True
    _save(settings, settings_file)


@app.command("scale")
def scale(
    preset: str = typer.Argument(..., help="One of: " + ", ".join(label for _, label in SCALE_PRESETS)),
    settings_file: Optional[Path] = SettingsFileOption,
) -> None:
    """Set the display scale."""
    settings = DiagnosticSettings.load(settings_file)
    labels = [label for _, label in SCALE_PRESETS]
    if preset not in labels:
        console.print(f"[red]Unknown scale '{escape(preset)}'.[/red] Choose from: {', '.join(labels)}")
        raise typer.Exit(code=2)
    settings.set_scale_preset(labels.index(preset))
    _save(settings, settings_file)


@app.command("reset")
def reset(settings_file: Optional[Path] = SettingsFileOption) -> None:
    """Restore the default settings."""
    _save(DiagnosticSettings(), settings_file)
