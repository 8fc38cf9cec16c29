"""Validate command."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from kanto.cli_support import load_config, print_error, print_success, print_warning
from kanto.core.validator import Validator
from kanto.models.report import Severity, ValidationReport

_STATUS_STYLE = {
    "passed": "[green]passed[/green]",
    "failed": "[red]failed[/red]",
    "skipped": "[yellow]skipped[/yellow]",
}


def register_validate_commands(app: typer.Typer, console: Console) -> None:
    """Attach the validate command to the main CLI."""

    @app.command()
    def validate(
        server: str = typer.Argument(..., help="Server name to validate"),
        project_dir: Optional[str] = typer.Option(None, "--project-dir", "-p", help="Project directory"),
    ) -> None:
        """Check a server configuration before deploying it."""
        config = load_config(project_dir)
        report = Validator(config).validate(server)

        _print_report(console, report)

        if not report.ok:
            print_error(console, f"Validation failed with {len(report.errors)} error(s)")
            raise typer.Exit(1)

        print_success(console, f"All validations passed for {server}")


def _print_report(console: Console, report: ValidationReport) -> None:
    table = Table(title=f"Validation: {report.server}", show_header=True)
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    for check, status in report.checks.items():
        table.add_row(check, _STATUS_STYLE.get(status, status))
    console.print(table)

    for issue in report.issues:
        if issue.severity == Severity.ERROR:
            print_error(console, f"[{issue.check}] {issue.message}")
        else:
            print_warning(console, f"[{issue.check}] {issue.message}")
        if issue.remediation:
            console.print(f"    [dim]Fix:[/dim] {issue.remediation}")

    summary = report.summary
    if not summary:
        return

    console.print("\n[bold]Configuration summary[/bold]")
    console.print(f"  Server: {summary['server']}")
    console.print(f"  Domain: {summary['domain']}")
    console.print(f"  Internal domain: {summary['internal_domain']}")
    console.print(f"  Enabled stacks: {', '.join(summary['enabled_stacks']) or 'none'}")
    if summary['external_services']:
        console.print("  External services:")
        for url in summary['external_services']:
            console.print(f"    {url}")
