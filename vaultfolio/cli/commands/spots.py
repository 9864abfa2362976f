"""Spot commands: where collectibles are bought."""

import json

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vaultfolio.cli.error_handler import handle_cli_errors
from vaultfolio.cli.formatting import (
    BORDER_PRIMARY,
    PANEL_PADDING,
    format_money,
    format_rating,
    short_id,
)
from vaultfolio.core.portfolio.manager import CollectionManager
from vaultfolio.core.spots.manager import SPOT_TYPES, SpotManager
from vaultfolio.core.spots.matching import total_spent


@click.group()
@click.pass_context
def spots(ctx: click.Context) -> None:
    """
    Manage purchase spots.

    A spot is a store, website or market where you buy. Purchases are
    linked to a spot when their source mentions its name.

    \b
    Examples:
        vaultfolio spots add "Gamemania" --type store --rating 4
        vaultfolio spots list
        vaultfolio spots show 1
    """
    pass


@spots.command("add")
@click.argument("name")
@click.option(
    "--type", "spot_type",
    type=click.Choice(list(SPOT_TYPES)),
    default="store",
    help="Kind of spot",
)
@click.option("--rating", "-r", type=click.IntRange(1, 5), default=3, show_default=True, help="1-5 stars")
@click.option("--note", "-n", default=None, help="Free-text note")
@click.pass_context
@handle_cli_errors
def spots_add(ctx: click.Context, name: str, spot_type: str, rating: int, note: str) -> None:
    """Add a spot."""
    console: Console = ctx.obj["console"]

    spot = SpotManager().add_spot(name, spot_type=spot_type, rating=rating, note=note)
    console.print(f"[green]Added spot #{spot.id}: {spot.name}[/green]")
    console.print(f"  Type: {SPOT_TYPES[spot.spot_type]}")
    console.print(f"  Rating: {format_rating(spot.rating)}")


@spots.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def spots_list(ctx: click.Context, as_json: bool) -> None:
    """List spots, best rated first."""
    console: Console = ctx.obj["console"]

    spot_list = SpotManager().list_spots()

    if as_json:
        data = [
            {"id": s.id, "name": s.name, "type": s.spot_type, "rating": s.rating, "note": s.note}
            for s in spot_list
        ]
        console.print(json.dumps(data, indent=2))
        return

    if not spot_list:
        console.print("[yellow]No spots yet[/yellow]")
        console.print('[dim]Run `vaultfolio spots add "NAME"` to add one[/dim]')
        return

    table = Table(title="Spots")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Rating")
    table.add_column("Note")
    for s in spot_list:
        table.add_row(str(s.id), s.name, SPOT_TYPES[s.spot_type], format_rating(s.rating), s.note or "")
    console.print(table)


@spots.command("show")
@click.argument("spot_id", type=int)
@click.pass_context
@handle_cli_errors
def spots_show(ctx: click.Context, spot_id: int) -> None:
    """Show a spot with the purchases made there."""
    console: Console = ctx.obj["console"]

    manager = SpotManager()
    spot = manager.get_spot(spot_id)
    purchases = manager.get_purchases(spot, CollectionManager().list_holdings())

    lines = [
        f"[cyan]Type:[/cyan] {SPOT_TYPES[spot.spot_type]}",
        f"[cyan]Rating:[/cyan] {format_rating(spot.rating)}",
        f"[cyan]Purchases:[/cyan] {len(purchases)}",
        f"[cyan]Total spent:[/cyan] {format_money(total_spent(purchases))}",
    ]
    if spot.note:
        lines.append(f"[cyan]Note:[/cyan] {spot.note}")
    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]{spot.name}[/bold]",
            border_style=BORDER_PRIMARY,
            padding=PANEL_PADDING,
        )
    )

    if not purchases:
        return

    table = Table(title="Purchases")
    table.add_column("Date")
    table.add_column("Holding", style="cyan")
    table.add_column("Lot", style="dim")
    table.add_column("Qty", justify="right")
    table.add_column("Unit Price", justify="right")
    table.add_column("Cost", justify="right")
    for p in purchases:
        table.add_row(
            p.purchase_date.isoformat(),
            p.holding_name,
            short_id(p.lot_id),
            str(p.quantity),
            format_money(p.unit_price),
            format_money(p.cost),
        )
    console.print(table)


@spots.command("remove")
@click.argument("spot_id", type=int)
@click.pass_context
@handle_cli_errors
def spots_remove(ctx: click.Context, spot_id: int) -> None:
    """Remove a spot (purchases are kept)."""
    console: Console = ctx.obj["console"]

    if SpotManager().remove_spot(spot_id):
        console.print(f"[green]Removed spot #{spot_id}[/green]")
    else:
        console.print(f"[red]Spot #{spot_id} not found[/red]")
        raise SystemExit(1)
