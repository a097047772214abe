"""Shared Rich console for idntag.

Errors, warnings and the identification spinner go to stderr so that report
lines on stdout stay machine readable.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.markup import escape
from rich.status import Status

# Global console instance (initialized in CLI)
_console: Console | None = None


def get_console() -> Console:
    """Get the global Rich console instance, creating a stderr console on first use."""
    global _console
    if _console is None:
        _console = Console(stderr=True)
    return _console


@contextmanager
def status(message: str, spinner: str = "dots") -> Iterator[Status]:
    """
    Show a spinner while a blocking operation runs.

    Example:
        with status("Identifying song.mp3..."):
            identifier.identify(path)
    """
    with get_console().status(message, spinner=spinner) as st:
        yield st


def print_error(message: str) -> None:
    get_console().print(f"[red]Error: {escape(message)}[/red]", highlight=False)


def print_warning(message: str) -> None:
    get_console().print(f"[yellow]Warning: {escape(message)}[/yellow]", highlight=False)
