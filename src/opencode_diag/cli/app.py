"""Root Typer application, mounts sub-commands."""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

app = typer.Typer(
    name="ocdiag",
    help="OpenCode Diagnostics - Check system, network, and AI API health.",
    no_args_is_help=True,
)


@app.callback()
def root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


def _register_commands() -> None:
    from opencode_diag.cli.commands.run_cmd import app as run_app
    from opencode_diag.cli.commands.watch_cmd import app as watch_app
    from opencode_diag.cli.commands.settings_cmd import app as settings_app
    from opencode_diag.cli.commands.processes_cmd import app as processes_app

    app.add_typer(run_app, name="run", help="Run diagnostics once")
    app.add_typer(watch_app, name="watch", help="Live dashboard with auto-refresh")
    app.add_typer(settings_app, name="settings", help="Show or change settings")
    app.add_typer(processes_app, name="processes", help="Inspect running processes")


_register_commands()


def main() -> None:
    app()
