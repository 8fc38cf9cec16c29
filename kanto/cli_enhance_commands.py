"""Enhance command."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from kanto.cli_support import handle_cli_error, load_config, print_info, print_success
from kanto.core.errors import KantoError
from kanto.services.compose_enhancer import ComposeEnhancer


def register_enhance_commands(app: typer.Typer, console: Console) -> None:
    """Attach the enhance command to the main CLI."""

    @app.command()
    def enhance(
        dry_run: bool = typer.Option(False, "--dry-run", help="Show changes without writing files"),
        project_dir: Optional[str] = typer.Option(None, "--project-dir", "-p", help="Project directory"),
    ) -> None:
        """Add logging, healthchecks, labels and limits to stack definitions."""
        config = load_config(project_dir)
        enhancer = ComposeEnhancer(config.stacks_dir)

        try:
            results = enhancer.enhance_all(dry_run=dry_run)
        except KantoError as e:
            handle_cli_error(e, console)

        if not results:
            print_info(console, f"No stack definitions found under {config.stacks_dir}")
            return

        table = Table(title="Stack enhancements", show_header=True)
        table.add_column("Stack", style="cyan")
        table.add_column("Changes")
        for result in results:
            table.add_row(
                result.path.parent.name,
                "\n".join(result.changes) if result.changes else "[dim]unchanged[/dim]",
            )
        console.print(table)

        changed = sum(1 for r in results if r.changed)
        if dry_run:
            print_info(console, f"DRY RUN: {changed} file(s) would be updated")
        else:
            print_success(console, f"{changed} file(s) updated")
