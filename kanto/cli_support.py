"""Shared utilities for Kanto CLI modules."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from kanto.core.config import KantoConfig
from kanto.core.errors import KantoError


def find_project_dir(project_dir: Optional[str] = None) -> Path:
    """Locate the operator repository: option, $KANTO_PROJECT_DIR, then cwd."""
    if project_dir:
        return Path(project_dir)

    if env_dir := os.environ.get("KANTO_PROJECT_DIR"):
        return Path(env_dir)

    return Path.cwd()


def load_config(project_dir: Optional[str] = None) -> KantoConfig:
    """Build the runtime configuration for a CLI invocation."""
    return KantoConfig.from_env(str(find_project_dir(project_dir)))


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands.

    Args:
        log_file: Path to log file (optional)
        verbose: Enable verbose logging
    """
    from kanto.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Prints the remediation hint for Kanto errors.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if isinstance(e, KantoError) and e.remediation:
        console.print(f"[dim]Fix:[/dim] {e.remediation}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {message}")
