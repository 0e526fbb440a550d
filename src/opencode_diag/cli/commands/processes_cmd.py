"""ocdiag processes - Inspect running processes."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from opencode_diag.core.processes import find_processes, top_processes
from opencode_diag.output.tables import process_table

app = typer.Typer()
console = Console()


@app.callback(invoke_without_command=True)
def processes(
    pattern: Optional[str] = typer.Argument(None, help="Case-insensitive name fragment"),
    top: int = typer.Option(10, "--top", "-t", min=1, help="Show the N largest processes by memory"),
) -> None:
    """List processes matching a name, or the largest ones by memory."""
    if pattern:
        matches = find_processes(pattern)
        shown = escape(pattern)
        if not matches:
            console.print(f"[dim]No processes matching '{shown}'.[/dim]")
            return
        console.print(process_table(matches, title=f"Processes matching '{shown}'"))
        return
    console.print(process_table(top_processes(top), title=f"Top {top} processes by memory"))
