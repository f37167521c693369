"""Coloured status messages for the terminal."""

import os

from rich.console import Console
from rich.markup import escape
from rich.text import Text


def _no_emoji() -> bool:
    return "NO_EMOJI" in os.environ


def _emit(symbol: str, fallback: str, message: str, style: str) -> None:
    mark = fallback if _no_emoji() else symbol
    console = Console(highlight=False, soft_wrap=True, emoji=False)
    console.print(Text(f"{mark} {message}", style=style))


def warn(message: str) -> None:
    """Print a warning line in red."""
    _emit("⚠️ ", "!", message, "red")


def success(message: str) -> None:
    """Print a success line in green."""
    _emit("✅", "✓", message, "green")


def bold(text: object) -> str:
    """Return console markup rendering ``text`` in bold."""
    return f"[bold]{escape(str(text))}[/bold]"


def blue(text: object) -> str:
    """Return console markup rendering ``text`` in bold blue."""
    return f"[bold blue]{escape(str(text))}[/bold blue]"