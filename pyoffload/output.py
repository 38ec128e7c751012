"""Console output formatting for the CLI."""

import json
import sys
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormatter:
    """Formats CLI output as rich text or JSON."""

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize output formatter.

        Args:
            json_output: Emit machine-readable JSON instead of text
            quiet: Suppress non-essential output
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        if not self.json_output:
            self.console.print(escape(message))

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[cyan]{escape(message)}[/cyan]")

    def success(self, message: str) -> None:
        if not self.json_output:
            self.console.print(f"[green]✓ {escape(message)}[/green]")

    def warning(self, message: str) -> None:
        self.err_console.print(f"[yellow]Warning: {escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error: {escape(message)}[/red]")

    def output_json(self, data: Any) -> None:
        sys.stdout.write(json.dumps(data, indent=2, default=str) + "\n")

    def print_summary(
        self,
        title: str,
        items: list[tuple[str, Any]],
        styles: Optional[dict[str, str]] = None,
    ) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            items: (label, value) rows
            styles: Optional rich style per label
        """
        if self.json_output:
            return
        styles = styles or {}
        table = Table(title=title, show_header=False, title_justify="left")
        table.add_column("Field", style="bold")
        table.add_column("Value", justify="right")
        for label, value in items:
            style = styles.get(label)
            text = escape(str(value))
            table.add_row(label, f"[{style}]{text}[/{style}]" if style else text)
        self.console.print(table)
