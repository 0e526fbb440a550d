"""Shared CLI options."""

from __future__ import annotations

import typer

OutputOption = typer.Option("table", "--output", "-o", help="Output format: table, text, json, yaml")
SettingsFileOption = typer.Option(
    None, "--settings-file", help="Settings file (default: per-user config directory)",
)
