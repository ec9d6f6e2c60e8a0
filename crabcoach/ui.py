"""Coloured status messages for the terminal."""

import os

from rich.console import Console
from rich.text import Text


def _emit(symbol: str, fallback: str, message: str, colour: str) -> None:
    mark = fallback if "NO_EMOJI" in os.environ else symbol
    console = Console(highlight=False, emoji=False, soft_wrap=True)
    console.print(Text.assemble((mark, colour), " ", (message, colour)))


def warn(message: str) -> None:
    """Print a warning line in red."""
    _emit("⚠️ ", "!", message, "red")


def success(message: str) -> None:
    """Print a success line in green."""
    _emit("✅", "✓", message, "green")