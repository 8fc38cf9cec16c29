"""Secrets command group: generate, encrypt, decrypt, edit, view."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from kanto.cli_support import (
    handle_cli_error,
    load_config,
    print_info,
    print_success,
    print_warning,
)
from kanto.core.errors import KantoError
from kanto.services.secrets import SecretStore

_PROJECT_DIR_OPTION = typer.Option(None, "--project-dir", "-p", help="Project directory")


def register_secrets_commands(root: typer.Typer, console: Console) -> None:
    """Attach secrets subcommands to the main CLI."""
    secrets_app = typer.Typer(help="Manage encrypted per-server secrets")

    @secrets_app.command("generate")
    def generate_command(
        server: str = typer.Argument(..., help="Server name"),
        force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing secrets"),
        project_dir: Optional[str] = _PROJECT_DIR_OPTION,
    ) -> None:
        """Generate a fresh secrets file with random values."""
        store = SecretStore(load_config(project_dir))
        try:
            path = store.generate(server, overwrite=force)
        except KantoError as e:
            handle_cli_error(e, console)

        print_success(console, f"Secrets generated: {path}")
        print_warning(console, "Edit the file to add your API tokens, then run:")
        console.print(f"  kanto secrets encrypt {server}")

    @secrets_app.command("encrypt")
    def encrypt_command(
        server: str = typer.Argument(..., help="Server name"),
        project_dir: Optional[str] = _PROJECT_DIR_OPTION,
    ) -> None:
        """Encrypt secrets with age and remove the plaintext."""
        store = SecretStore(load_config(project_dir))
        try:
            path = store.encrypt(server)
        except KantoError as e:
            handle_cli_error(e, console)

        print_success(console, f"Secrets encrypted: {path}")

    @secrets_app.command("decrypt")
    def decrypt_command(
        server: str = typer.Argument(..., help="Server name"),
        project_dir: Optional[str] = _PROJECT_DIR_OPTION,
    ) -> None:
        """Decrypt secrets to the plaintext file for editing."""
        store = SecretStore(load_config(project_dir))
        try:
            path = store.decrypt(server)
        except KantoError as e:
            handle_cli_error(e, console)

        print_success(console, f"Secrets decrypted: {path}")
        print_warning(console, f"Remember to re-encrypt: kanto secrets encrypt {server}")

    @secrets_app.command("edit")
    def edit_command(
        server: str = typer.Argument(..., help="Server name"),
        project_dir: Optional[str] = _PROJECT_DIR_OPTION,
    ) -> None:
        """Decrypt, open $EDITOR, and re-encrypt."""
        config = load_config(project_dir)
        store = SecretStore(config)
        print_info(console, f"Opening secrets for {server} in {config.editor}")
        try:
            store.edit(server)
        except KantoError as e:
            handle_cli_error(e, console)

        print_success(console, "Secrets edited and re-encrypted")

    @secrets_app.command("view")
    def view_command(
        server: str = typer.Argument(..., help="Server name"),
        project_dir: Optional[str] = _PROJECT_DIR_OPTION,
    ) -> None:
        """Print decrypted secrets without writing them to disk."""
        store = SecretStore(load_config(project_dir))
        try:
            text = store.view(server)
        except KantoError as e:
            handle_cli_error(e, console)

        typer.echo(text, nl=False)

    root.add_typer(secrets_app, name="secrets")
