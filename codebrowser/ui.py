"""Central UI handler for cbgen.

Single source of truth for Rich console styling. Import this instead of
instantiating Console() in every module.

Usage:
    from codebrowser.ui import console, print_error

    console.print("[path]out/index.html[/path]")
    print_error("Could not load compilation database")
"""

import sys

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

CODEBROWSER_THEME = Theme({
    "error": "bold red",
    "progress": "cyan",
    "path": "bold cyan",
})

# Progress and errors go to stderr; stdout stays free for NDJSON logs
console = Console(
    theme=CODEBROWSER_THEME,
    stderr=True,
    force_terminal=sys.stderr.isatty(),
)


def print_error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[error]ERROR:[/error] {msg}", highlight=False)


def print_progress(percent: int, path: str) -> None:
    """Print one ``[NN%] Processing <file>`` line."""
    console.print(f"[progress][{percent}%][/progress] Processing [path]{path}[/path]", highlight=False)


def print_summary(summary: dict) -> None:
    """Render the end-of-run counters as a two-column table."""
    table = Table(title="Generation summary", show_header=True, header_style="bold")
    table.add_column("Counter")
    table.add_column("Value", justify="right")
    for key in (
        "submitted",
        "recovered",
        "processed",
        "failed",
        "duplicates",
        "skipped",
        "plain_pages",
    ):
        value = summary.get(key, 0)
        style = "error" if key == "failed" and value else None
        table.add_row(key, str(value), style=style)
    table.add_row("elapsed", f"{summary.get('elapsed', 0.0):.1f}s")
    console.print(table)
