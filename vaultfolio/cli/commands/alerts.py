"""Target price alert history commands."""

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from vaultfolio.cli.error_handler import handle_cli_errors
from vaultfolio.cli.formatting import format_money
from vaultfolio.core.alerts.notifier import AlertNotifier


@click.group()
@click.pass_context
def alerts(ctx: click.Context) -> None:
    """
    Review target price alerts.

    An alert is recorded each time an estimate update reaches the
    holding's alert target (see `collection target`).

    \b
    Examples:
        vaultfolio alerts history
        vaultfolio alerts history --unacknowledged
        vaultfolio alerts ack 3
    """
    pass


@alerts.command("history")
@click.option("--holding", "holding_ref", default=None, help="Filter by holding id or name")
@click.option("--unacknowledged", is_flag=True, help="Show only unacknowledged")
@click.option("--limit", type=int, default=20, help="Maximum results")
@click.pass_context
@handle_cli_errors
def alerts_history(ctx: click.Context, holding_ref: str, unacknowledged: bool, limit: int) -> None:
    """Show alert trigger history."""
    console: Console = ctx.obj["console"]

    holding_id = None
    if holding_ref:
        from vaultfolio.core.portfolio.manager import CollectionManager

        holding_id = CollectionManager().resolve_holding_id(holding_ref)

    notifier = AlertNotifier()
    history = notifier.get_history(
        holding_id=holding_id, unacknowledged_only=unacknowledged, limit=limit
    )

    if not history:
        console.print("[yellow]No alert history found[/yellow]")
        return

    table = Table(title="Alert History")
    table.add_column("ID", style="dim")
    table.add_column("Triggered")
    table.add_column("Holding", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Ack")

    for record in history:
        ack_status = Text("Yes", style="green") if record.acknowledged else Text("No", style="yellow")
        table.add_row(
            str(record.id),
            record.triggered_at.strftime("%Y-%m-%d %H:%M"),
            record.holding_name,
            format_money(record.price),
            format_money(record.target_price),
            ack_status,
        )

    console.print(table)

    unack_count = sum(1 for r in history if not r.acknowledged)
    if unack_count > 0:
        console.print(f"\n[yellow]{unack_count} unacknowledged alert(s)[/yellow]")
        console.print("[dim]Run `vaultfolio alerts ack <id>` to acknowledge[/dim]")


@alerts.command("ack")
@click.argument("alert_id", type=int)
@click.pass_context
@handle_cli_errors
def alerts_ack(ctx: click.Context, alert_id: int) -> None:
    """Acknowledge an alert."""
    console: Console = ctx.obj["console"]

    AlertNotifier().acknowledge(alert_id)
    console.print(f"[green]Acknowledged alert #{alert_id}[/green]")
