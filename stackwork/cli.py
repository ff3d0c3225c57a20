"""
Stackwork CLI - run custom resource handlers locally and inspect configuration.
"""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .errors import StackworkError
from .handlers import build_certificate_provider
from .logs import configure_logging
from .settings import get_settings

# Setup
app = typer.Typer(
    name="stackwork",
    help="Custom resource provisioning and deployment orchestration",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

RESOURCES = {
    "certificate": build_certificate_provider,
}

SECRET_SETTINGS = {"github_token", "github_webhook_secret"}


def _load_event(event_file: Path) -> dict:
    """Read a request envelope from a JSON file.

    Raises:
        SystemExit: If the file is missing or not JSON
    """
    if not event_file.exists():
        console.print(f"[bold red]✗ Error:[/bold red] {event_file} not found")
        raise typer.Exit(code=1)
    try:
        return json.loads(event_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {event_file} is not valid JSON: {e}")
        raise typer.Exit(code=1)


@app.command()
def invoke(
    resource: str = typer.Argument(..., help="Resource handler to run (certificate)"),
    event_file: Path = typer.Argument(..., help="JSON file holding the request envelope"),
    function_arn: str | None = typer.Option(
        None, "--function-arn", help="Function to re-invoke while the operation is pending"
    ),
):
    """Run one invocation of a custom resource handler."""
    configure_logging()

    factory = RESOURCES.get(resource)
    if factory is None:
        console.print(
            f"[bold red]✗ Error:[/bold red] Unknown resource '{resource}'. "
            f"Choose from: {', '.join(sorted(RESOURCES))}"
        )
        raise typer.Exit(code=1)

    event = _load_event(event_file)
    console.print(
        Panel.fit(
            f"[bold blue]Stackwork Invoke[/bold blue]\n"
            f"Resource: {resource}\n"
            f"Request: {event.get('RequestType', '?')}",
            border_style="blue",
        )
    )

    try:
        response = factory(function_arn).handle(event)
    except StackworkError as e:
        console.print(f"\n[bold red]✗ Invoke failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    if response is None:
        console.print("\n[yellow]⧗ Pending[/yellow] - a Wait re-invocation was scheduled")
        return

    color = "green" if response.status.value == "SUCCESS" else "red"
    console.print(f"\n[bold {color}]{response.status.value}[/bold {color}] {response.physical_resource_id}")
    console.print_json(json.dumps(response.to_payload()))


@app.command()
def settings():
    """Show the effective configuration."""
    table = Table(title="Stackwork Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, value in get_settings().model_dump().items():
        if name in SECRET_SETTINGS and value:
            value = "********"
        table.add_row(name, "[dim]unset[/dim]" if value is None else str(value))

    console.print(table)


@app.command()
def version():
    """Show the Stackwork version."""
    console.print(f"stackwork {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
