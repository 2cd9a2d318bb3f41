"""Console output helpers built on rich."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text


class OutputFormatter:
    """Formats CLI output as rich text or JSON.

    In quiet mode only errors are printed. In JSON mode human oriented
    messages go to stderr so stdout stays machine readable.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    @property
    def _info_console(self) -> Console:
        return self.err_console if self.json_output else self.console

    def print(self, message: str = "") -> None:
        if self.quiet:
            return
        self._info_console.print(message, markup=False, highlight=False)

    def info(self, message: str) -> None:
        if self.quiet:
            return
        self._info_console.print(message, markup=False, highlight=False)

    def success(self, message: str) -> None:
        if self.quiet:
            return
        self._info_console.print(f"[green]{escape(message)}[/green]", highlight=False)

    def warning(self, message: str) -> None:
        if self.quiet:
            return
        self.err_console.print(f"[yellow]{escape(message)}[/yellow]", highlight=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error: {escape(message)}[/red]", highlight=False)

    def print_json(self, data: Any) -> None:
        """Print data as JSON to stdout (never suppressed)."""
        self.console.print_json(json.dumps(data, default=str))

    def print_table(
        self,
        columns: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a rich table."""
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(Text(str(cell)) for cell in row))
        self.console.print(table)

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a titled list of key/value pairs.

        Args:
            title: Summary heading
            items: (label, value) pairs
        """
        if self.json_output:
            self.print_json({label: value for label, value in items})
            return
        if self.quiet:
            return
        self.console.print(f"\n[bold]{title}[/bold]")
        width = max((len(label) for label, _ in items), default=0)
        for label, value in items:
            self.console.print(
                f"  {label.ljust(width)} : {value}", markup=False, highlight=False
            )
