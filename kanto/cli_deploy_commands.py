"""Deploy command."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from kanto.cli_support import (
    handle_cli_error,
    load_config,
    print_error,
    print_info,
    print_success,
    setup_file_logging,
)
from kanto.core.deployer import Deployer, DeployOptions
from kanto.core.errors import KantoError


def register_deploy_commands(app: typer.Typer, console: Console) -> None:
    """Attach the deploy command to the main CLI."""

    @app.command()
    def deploy(
        server: str = typer.Argument(..., help="Server name (configs/servers/<server>.yml)"),
        stack: Optional[str] = typer.Option(None, "--stack", "-s", help="Deploy only this stack"),
        domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Override the profile domain"),
        dry_run: bool = typer.Option(False, "--dry-run", help="Render files only, touch no docker resources"),
        project_dir: Optional[str] = typer.Option(None, "--project-dir", "-p", help="Project directory"),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
        log_file: Optional[str] = typer.Option(None, "--log-file", help="Write logs to this file"),
    ) -> None:
        """Render the environment and bring up the server's stacks."""
        if log_file or verbose:
            setup_file_logging(log_file=log_file, verbose=verbose)

        config = load_config(project_dir)
        deployer = Deployer(config)
        options = DeployOptions(stack=stack, domain=domain, dry_run=dry_run)

        try:
            result = deployer.deploy(server, options)
        except KantoError as e:
            handle_cli_error(e, console, verbose=verbose)

        if not result.ok:
            failed = result.pipeline.failed_step
            print_error(console, f"Deployment failed at step '{failed.name}': {failed.message}")
            if failed.remediation:
                console.print(f"[dim]Fix:[/dim] {failed.remediation}")
            raise typer.Exit(1)

        if dry_run:
            print_info(console, f"Dry run complete for {server}")
        else:
            print_success(console, f"Deployment complete for {server}")

        if result.stacks:
            console.print(f"[dim]Stacks:[/dim] {', '.join(result.stacks)}")

        urls = result.access_urls()
        if urls:
            console.print("\n[bold cyan]Access your services:[/bold cyan]")
            for url in urls:
                console.print(f"  {url}")
