"""Consolidated display utilities for CLI commands.

Messages go to stderr so rendered templates on stdout can be piped.
"""
from typing import Any, Dict

from rich.console import Console

console = Console(stderr=True)


def success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓ {message}[/green]")


def warning(message: str) -> None:
    """Print warning message."""
    console.print(f"[yellow]⚠️  {message}[/yellow]")


def error(message: str) -> None:
    """Print error message."""
    console.print(f"[red]❌ {message}[/red]")


def info(message: str) -> None:
    """Print info message."""
    console.print(message)


def section(title: str) -> None:
    """Print section header."""
    console.print(f"\n[bold]{title}[/bold]")


def info_dict(data: Dict[str, Any], indent: str = "  ") -> None:
    """Print a dictionary as indented key-value pairs."""
    for key, value in data.items():
        console.print(f"{indent}{key}: {value}")


def resource_set_summary(resource_set, stack_name: str) -> None:
    """Standard summary of a planned resource set."""
    capabilities = resource_set.required_capabilities()
    info_dict({
        "Stack": stack_name,
        "Resources": ", ".join(resource_set.graph.names()) or "(none)",
        "Outputs": ", ".join(resource_set.outputs.names()) or "(none)",
        "Capabilities": ", ".join(capabilities) or "(none)",
    })
