#!/usr/bin/env python3
"""
Console UI Module using Rich

Styled messages, progress displays and interactive prompts shared by the
kenosis command line tools.
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Confirm, Prompt


def parse_selection(response: str, count: int) -> Optional[list[int]]:
    """Parse '1,3,5-7' or 'all' into zero-based indices.

    Returns None when the response cannot be parsed.
    """
    response = response.strip().lower()
    if response == "all":
        return list(range(count))
    if response in ("", "none"):
        return []

    indices: list[int] = []
    try:
        for part in response.split(","):
            part = part.strip()
            if not part:
                continue
            if "-" in part:
                start, end = (int(x) for x in part.split("-", 1))
                numbers = range(start, end + 1)
            else:
                numbers = [int(part)]
            for number in numbers:
                if not 1 <= number <= count:
                    return None
                if number - 1 not in indices:
                    indices.append(number - 1)
    except ValueError:
        return None
    return indices


class ConsoleUI:
    """Console UI handler using Rich"""

    def __init__(self, force_terminal: Optional[bool] = None, console: Optional[Console] = None):
        """Initialize console with optional terminal forcing"""
        self.console = console or Console(force_terminal=force_terminal, highlight=False)

    # Basic styled output methods
    def print_success(self, message: str):
        """Print success message in green"""
        self.console.print(message, style="green")

    def print_error(self, message: str):
        """Print error message in red"""
        self.console.print(message, style="red bold")

    def print_warning(self, message: str):
        """Print warning message in yellow"""
        self.console.print(message, style="yellow")

    def print_info(self, message: str):
        """Print info message in cyan"""
        self.console.print(message, style="cyan")

    def print_header(self, title: str, subtitle: Optional[str] = None):
        """Print a header with optional subtitle"""
        if subtitle:
            header_text = f"[bold]{title}[/bold]\n[dim]{subtitle}[/dim]"
        else:
            header_text = f"[bold]{title}[/bold]"

        panel = Panel(header_text, box=box.ROUNDED, padding=(0, 1))
        self.console.print(panel)

    def create_activity_progress(self):
        """Create a Rich progress context manager for activity-only display (no counts)"""
        return Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=self.console,
        )

    # Interactive prompts
    def confirm(self, question: str, default: bool = False) -> bool:
        """Ask for yes/no confirmation"""
        return Confirm.ask(question, default=default, console=self.console)

    def prompt(self, question: str, default: Optional[str] = None) -> str:
        """Ask for text input with optional default"""
        return Prompt.ask(question, default=default, console=self.console)

    def select_indices(self, count: int) -> list[int]:
        """Ask for a selection of numbered items, returning zero-based indices"""
        while True:
            response = self.prompt("Enter numbers (e.g. 1,3,5-7), 'all' or 'none'", default="all")
            selected = parse_selection(response, count)
            if selected is not None:
                return selected
            self.print_error("Invalid selection. Please try again.")
