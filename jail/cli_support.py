"""Shared utilities for jail CLI modules."""
from __future__ import annotations

from typing import Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import IntPrompt

from jail.core.config import JailConfig
from jail.core.lifecycle import JailLifecycle

console = Console()


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable verbose logging
    """
    from jail.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def prompt_chooser(prompt: str, items: Sequence[str]) -> int:
    """Numbered interactive selection; returns the zero-based index."""
    for index, item in enumerate(items, start=1):
        console.print(f"  [cyan]{index}[/cyan]) {item}")

    choice = IntPrompt.ask(
        prompt,
        console=console,
        choices=[str(i) for i in range(1, len(items) + 1)],
        default=1,
    )
    return choice - 1


def get_lifecycle() -> JailLifecycle:
    """Return a JailLifecycle built from the current environment."""
    return JailLifecycle(JailConfig.load(), chooser=prompt_chooser)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")
