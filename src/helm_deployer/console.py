"""Rich console utilities for styled terminal output.

This module provides a consistent interface for all CLI output using the
Rich library. Text that may originate from CI payloads or helm itself is
escaped before it reaches Rich markup.
"""

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

# Shared console instance
console = Console(theme=_THEME)


def info(message: str) -> None:
    """Print an informational message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message.

    Args:
        message: The message to display.

    """
    console.print(f"[success]✓[/success] {message}")


def error(message: str) -> None:
    """Print an error message.

    The message is escaped, since error text usually comes from
    subprocess output and may contain square brackets.

    Args:
        message: The message to display.

    """
    console.print(f"[error]✗[/error] {escape(message)}")


def action(message: str) -> None:
    """Print an action/progress message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Print a sub-step message.

    Args:
        message: The message to display.

    """
    console.print(f"[muted]•[/muted] {message}")


def highlight(text: str) -> str:
    """Return escaped text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{escape(text)}[/highlight]"


def muted(text: str) -> None:
    """Print a block of text dimmed, without markup interpretation."""
    console.print(Text(text, style="muted"))


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while performing an operation.

    Args:
        message: The status message to display.

    Yields:
        None

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def command(text: str) -> None:
    """Print a shell command exactly as it will run.

    No markup, highlighting or wrapping is applied, so long ``--set``
    assignments stay on one line and can be copied as written.

    Args:
        text: The command to display.

    """
    console.print(Text(text), soft_wrap=True, highlight=False)


def summary_panel(title: str, items: dict[str, str]) -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", Text(value))

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style="green"))
