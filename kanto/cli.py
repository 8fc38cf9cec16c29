#!/usr/bin/env python3
"""Kanto CLI - Deployment automation for Docker homelab servers."""

import typer
from rich.console import Console

from kanto.cli_deploy_commands import register_deploy_commands
from kanto.cli_enhance_commands import register_enhance_commands
from kanto.cli_secrets_commands import register_secrets_commands
from kanto.cli_validate_commands import register_validate_commands
from kanto.core.logger import get_logger

app = typer.Typer(
    name="kanto",
    help="""Kanto - Deployment automation for Docker homelab servers

One profile per server. Encrypted secrets. Numbered stacks.

Quick start:
  kanto secrets generate lugia   # Create secrets
  kanto secrets encrypt lugia    # Encrypt them with age
  kanto validate lugia           # Check the configuration
  kanto deploy lugia             # Bring the stacks up
""",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

# Attach modular subcommands
register_deploy_commands(app, console)
register_validate_commands(app, console)
register_secrets_commands(app, console)
register_enhance_commands(app, console)

if __name__ == "__main__":
    app()
