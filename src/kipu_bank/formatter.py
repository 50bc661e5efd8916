"""Rich console rendering for deployments."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .deploy import DeploymentResult
from .units import format_usd


def format_deployment(result: DeploymentResult, console: Console | None = None) -> None:
    """Print a summary panel for a finished deployment."""
    console = console or Console()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Address", result.address)
    table.add_row("Deployer", result.deployer)
    table.add_row("Transaction", result.tx_hash)
    table.add_row("Block", str(result.block_number))
    table.add_row("Bank Cap", format_usd(result.bank_cap_usd))
    table.add_row("Price Feed", result.price_feed)

    console.print(
        Panel(table, title="[bold]KipuBankV2 Deployed[/]", border_style="green")
    )
