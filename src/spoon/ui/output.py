"""User-facing status lines (``spoon clone ...``, ``warning ...``)."""

from typing import Optional

from rich.console import Console
from rich.markup import escape


class Output:
    """Prints prefixed, coloured status lines to the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def info(self, label: str, message: str = "") -> None:
        text = f"[bold cyan]spoon[/] [bold]{escape(label)}[/]"
        if message:
            text += f" [dim]{escape(message)}[/]"
        self.console.print(text)

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]warning[/] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]error[/] {escape(message)}")
