"""Console output for the pydropsync CLI."""

from typing import Any, Optional

from rich.console import Console


class OutputFormatter:
    """Prints user-facing status messages with rich styling."""

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        """Initialize output formatter.

        Args:
            quiet: Suppress everything except warnings and errors
            console: Console to print to (defaults to stdout)
        """
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = console or Console(stderr=True)

    def print(self, message: Any = "") -> None:
        if not self.quiet:
            self.console.print(message, highlight=False)

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, highlight=False)

    def success(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[green]✓[/green] {message}", highlight=False)

    def warning(self, message: str) -> None:
        self.err_console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {message}", highlight=False)
