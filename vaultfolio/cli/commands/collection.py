"""Collection commands for purchases, sales, estimates and P&L."""

import json
import logging
from dataclasses import asdict
from decimal import Decimal
from typing import Optional, Sequence

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vaultfolio.cli.error_handler import handle_cli_errors
from vaultfolio.cli.formatting import (
    BORDER_PRIMARY,
    BORDER_WARNING,
    PANEL_PADDING,
    colored_pct,
    colored_pnl,
    format_money,
    format_pct,
    format_rate,
    make_progress_bar,
    short_id,
)
from vaultfolio.cli.validators import ISO_DATE, MONEY, PLATFORM, validate_text_length
from vaultfolio.core.exceptions import NotFoundError
from vaultfolio.core.portfolio.fees import get_fee_table, platform_label
from vaultfolio.core.portfolio.manager import SORT_FIELDS, CollectionManager
from vaultfolio.core.portfolio.models import Category
from vaultfolio.core.portfolio.valuation import HoldingMetrics, compute_holding_metrics
from vaultfolio.core.pricing.quotes import summarize_prices

logger = logging.getLogger(__name__)

CATEGORY_CHOICES = [c.value for c in Category]


def _resolve_child(items: Sequence, ref: str, kind: str):
    """Find a lot or sale by full id or unique id prefix."""
    matches = [item for item in items if item.id == ref]
    if not matches:
        matches = [item for item in items if item.id.startswith(ref.lower())]
    if not matches:
        raise NotFoundError(kind, ref)
    if len(matches) > 1:
        raise ValueError(f"Ambiguous {kind.lower()} reference {ref!r}, use a longer id")
    return matches[0]


def _metrics_dict(metrics: HoldingMetrics) -> dict:
    return {k: (str(v) if isinstance(v, Decimal) else v) for k, v in asdict(metrics).items()}


@click.group()
@click.pass_context
def collection(ctx: click.Context) -> None:
    """
    Manage your collection.

    Record purchases and sales, keep market estimates up to date and
    follow realized and unrealized P&L.

    \b
    Examples:
        vaultfolio collection add "Evolving Skies ETB" -c "Elite Trainer Box" -p 49.99 -q 2
        vaultfolio collection sell 3f2a -p 140 -q 1 --platform ebay
        vaultfolio collection estimate 3f2a 150
        vaultfolio collection list
        vaultfolio collection summary
    """
    pass


@collection.command("add")
@click.argument("name")
@click.option(
    "--category", "-c",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    default=Category.OTHER.value,
    help="Product category",
)
@click.option("--price", "-p", type=MONEY, required=True, help="Unit purchase price")
@click.option("--quantity", "-q", type=int, default=1, show_default=True, help="Units purchased")
@click.option("--date", "-d", "purchase_date", type=ISO_DATE, default=None, help="Purchase date (YYYY-MM-DD)")
@click.option("--source", "-s", default="", help="Where it was bought")
@click.option("--estimate", "-e", type=MONEY, default=None, help="Current market estimate (defaults to price)")
@click.pass_context
@handle_cli_errors
def collection_add(
    ctx: click.Context,
    name: str,
    category: str,
    price: Decimal,
    quantity: int,
    purchase_date,
    source: str,
    estimate: Optional[Decimal],
) -> None:
    """Add a new holding with its first purchase."""
    console: Console = ctx.obj["console"]
    validate_text_length(source, 200, "Source")

    manager = CollectionManager()
    holding = manager.add_holding(
        name=name,
        category=category,
        unit_price=price,
        quantity=quantity,
        purchase_date=purchase_date,
        source=source,
        current_estimate=estimate,
    )

    console.print(f"[green]Added {holding.name}[/green] [dim]({short_id(holding.id)})[/dim]")
    console.print(f"  Category: {holding.category.value}")
    console.print(f"  Units: {quantity} @ {format_money(price)}")
    console.print(f"  Estimate: {format_money(holding.current_estimate)}")


@collection.command("buy")
@click.argument("holding_ref")
@click.option("--price", "-p", type=MONEY, required=True, help="Unit purchase price")
@click.option("--quantity", "-q", type=int, default=1, show_default=True, help="Units purchased")
@click.option("--date", "-d", "purchase_date", type=ISO_DATE, default=None, help="Purchase date (YYYY-MM-DD)")
@click.option("--source", "-s", default="", help="Where it was bought")
@click.pass_context
@handle_cli_errors
def collection_buy(
    ctx: click.Context, holding_ref: str, price: Decimal, quantity: int, purchase_date, source: str
) -> None:
    """Record another purchase of an existing holding."""
    console: Console = ctx.obj["console"]
    validate_text_length(source, 200, "Source")

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    holding = manager.add_purchase(holding_id, price, quantity, purchase_date, source)
    metrics = compute_holding_metrics(holding)

    console.print(f"[green]Recorded purchase of {quantity} x {holding.name}[/green]")
    console.print(f"  Price: {format_money(price)}")
    console.print(f"  Average cost: {format_money(metrics.average_cost)}")
    console.print(f"  Units held: {metrics.remaining_quantity}")


@collection.command("edit-lot")
@click.argument("holding_ref")
@click.argument("lot_ref")
@click.option("--price", "-p", type=MONEY, default=None, help="New unit price")
@click.option("--quantity", "-q", type=int, default=None, help="New quantity")
@click.option("--date", "-d", "purchase_date", type=ISO_DATE, default=None, help="New purchase date")
@click.option("--source", "-s", default=None, help="New source")
@click.pass_context
@handle_cli_errors
def collection_edit_lot(
    ctx: click.Context,
    holding_ref: str,
    lot_ref: str,
    price: Optional[Decimal],
    quantity: Optional[int],
    purchase_date,
    source: Optional[str],
) -> None:
    """Edit a purchase lot."""
    console: Console = ctx.obj["console"]
    validate_text_length(source, 200, "Source")

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    lot = _resolve_child(manager.get_holding(holding_id).lots, lot_ref, "Lot")
    holding = manager.edit_lot(
        holding_id, lot.id, unit_price=price, quantity=quantity,
        purchase_date=purchase_date, source=source,
    )
    metrics = compute_holding_metrics(holding)

    console.print(f"[green]Updated lot {short_id(lot.id)} of {holding.name}[/green]")
    console.print(f"  Average cost: {format_money(metrics.average_cost)}")


@collection.command("remove-lot")
@click.argument("holding_ref")
@click.argument("lot_ref")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
@handle_cli_errors
def collection_remove_lot(ctx: click.Context, holding_ref: str, lot_ref: str, yes: bool) -> None:
    """Delete a purchase lot (deleting the last lot deletes the holding)."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    current = manager.get_holding(holding_id)
    lot = _resolve_child(current.lots, lot_ref, "Lot")

    if len(current.lots) == 1 and not yes:
        click.confirm(
            f"This is the last lot of {current.name}. Delete the holding?", abort=True
        )

    holding = manager.remove_lot(holding_id, lot.id)
    if holding is None:
        console.print(f"[yellow]Deleted {current.name} (last lot removed)[/yellow]")
    else:
        console.print(f"[green]Removed lot {short_id(lot.id)} from {holding.name}[/green]")


@collection.command("sell")
@click.argument("holding_ref")
@click.option("--price", "-p", type=MONEY, required=True, help="Unit sale price")
@click.option("--quantity", "-q", type=int, default=1, show_default=True, help="Units sold")
@click.option("--platform", "-P", type=PLATFORM, default="direct", show_default=True, help="Sales platform")
@click.option("--date", "-d", "sale_date", type=ISO_DATE, default=None, help="Sale date (YYYY-MM-DD)")
@click.pass_context
@handle_cli_errors
def collection_sell(
    ctx: click.Context, holding_ref: str, price: Decimal, quantity: int, platform: str, sale_date
) -> None:
    """Record a sale with platform fees and realized P&L."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    sale = manager.record_sale(holding_id, price, quantity, platform, sale_date)
    holding = manager.get_holding(holding_id)
    metrics = compute_holding_metrics(holding)

    console.print(f"[green]Recorded sale of {quantity} x {holding.name}[/green]")
    console.print(f"  Platform: {platform_label(sale.platform)} ({format_rate(sale.fee_rate)} fee)")
    console.print(f"  Gross: {format_money(sale.gross_amount)}")
    console.print(f"  Fees: {format_money(sale.fee_amount)}")
    console.print(f"  Net: {format_money(sale.net_amount)}")
    console.print(f"  Realized P&L (holding): {colored_pnl(metrics.realized_pnl)}")
    console.print(f"  Units remaining: {metrics.remaining_quantity}")


@collection.command("remove-sale")
@click.argument("holding_ref")
@click.argument("sale_ref")
@click.pass_context
@handle_cli_errors
def collection_remove_sale(ctx: click.Context, holding_ref: str, sale_ref: str) -> None:
    """Delete a recorded sale, restoring its units."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    sale = _resolve_child(manager.get_holding(holding_id).sales, sale_ref, "Sale")
    holding = manager.delete_sale(holding_id, sale.id)
    metrics = compute_holding_metrics(holding)

    console.print(f"[green]Removed sale {short_id(sale.id)} from {holding.name}[/green]")
    console.print(f"  Units remaining: {metrics.remaining_quantity}")


@collection.command("estimate")
@click.argument("holding_ref")
@click.argument("price", type=MONEY)
@click.option("--date", "-d", "as_of", type=ISO_DATE, default=None, help="Estimate date (YYYY-MM-DD)")
@click.pass_context
@handle_cli_errors
def collection_estimate(ctx: click.Context, holding_ref: str, price: Decimal, as_of) -> None:
    """Update the current market estimate of a holding."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    update = manager.update_estimate(holding_id, price, as_of)
    metrics = compute_holding_metrics(update.holding)

    console.print(f"[green]Estimate for {update.holding.name} set to {format_money(price)}[/green]")
    console.print(f"  Unrealized P&L: {colored_pnl(metrics.unrealized_pnl)}")

    if update.alert is not None:
        console.print()
        console.print(
            Panel(
                f"[bold]{update.alert.holding_name}[/bold] reached "
                f"{format_money(update.alert.price)} "
                f"(target {format_money(update.alert.target_price)})",
                title="[yellow]Target price reached[/yellow]",
                border_style=BORDER_WARNING,
                padding=PANEL_PADDING,
            )
        )


@collection.command("target")
@click.argument("holding_ref")
@click.argument("price", type=MONEY, required=False)
@click.option("--clear", is_flag=True, help="Remove the alert target")
@click.pass_context
@handle_cli_errors
def collection_target(ctx: click.Context, holding_ref: str, price: Optional[Decimal], clear: bool) -> None:
    """Set the price at which an alert is raised."""
    console: Console = ctx.obj["console"]

    if price is None and not clear:
        console.print("[red]Error: give a PRICE or --clear[/red]")
        raise SystemExit(1)

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    holding = manager.set_target(holding_id, None if clear else price)

    if holding.target_alert_price is None:
        console.print(f"[green]Cleared alert target for {holding.name}[/green]")
    else:
        console.print(
            f"[green]Alert target for {holding.name} set to "
            f"{format_money(holding.target_alert_price)}[/green]"
        )


@collection.command("quote")
@click.argument("holding_ref")
@click.argument("prices", type=MONEY, nargs=-1, required=True)
@click.option("--apply", "apply_median", is_flag=True, help="Also adopt the median as current estimate")
@click.pass_context
@handle_cli_errors
def collection_quote(ctx: click.Context, holding_ref: str, prices: tuple, apply_median: bool) -> None:
    """Store a market quote built from observed sale PRICES."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    holding_id = manager.resolve_holding_id(holding_ref)
    quote = summarize_prices(prices)
    holding = manager.apply_quote(holding_id, quote)

    console.print(f"[green]Market quote stored for {holding.name}[/green]")
    console.print(f"  Median: {format_money(quote.median)}")
    console.print(f"  Range: {format_money(quote.min_price)} - {format_money(quote.max_price)}")
    console.print(f"  Observations: {quote.sales_count}")

    if apply_median:
        update = manager.update_estimate(holding_id, quote.median)
        console.print(f"  Estimate set to {format_money(update.holding.current_estimate)}")
        if update.alert is not None:
            console.print(f"[yellow]Target price reached: {update.alert.message}[/yellow]")


@collection.command("show")
@click.argument("holding_ref")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def collection_show(ctx: click.Context, holding_ref: str, as_json: bool) -> None:
    """Show a holding with its lots, sales and P&L."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    holding = manager.get_holding(manager.resolve_holding_id(holding_ref))
    metrics = compute_holding_metrics(holding)

    if as_json:
        data = {"holding": holding.to_dict(), "metrics": _metrics_dict(metrics)}
        console.print(json.dumps(data, indent=2))
        return

    lines = [
        f"[cyan]Category:[/cyan] {holding.category.value}",
        f"[cyan]Units held:[/cyan] {metrics.remaining_quantity} "
        f"[dim]({metrics.total_quantity} bought, {metrics.sold_quantity} sold)[/dim]",
        f"[cyan]Average cost:[/cyan] {format_money(metrics.average_cost)}",
        f"[cyan]Total cost:[/cyan] {format_money(metrics.total_cost)}",
        f"[cyan]Estimate:[/cyan] {format_money(holding.current_estimate)}",
        f"[cyan]Current value:[/cyan] {format_money(metrics.current_value)}",
        f"[cyan]Realized P&L:[/cyan] {colored_pnl(metrics.realized_pnl)}",
        f"[cyan]Unrealized P&L:[/cyan] {colored_pnl(metrics.unrealized_pnl)}",
        f"[cyan]Total P&L:[/cyan] {colored_pnl(metrics.total_pnl)} ({colored_pct(metrics.total_pnl_pct)})",
    ]
    if holding.target_alert_price is not None:
        lines.append(f"[cyan]Alert target:[/cyan] {format_money(holding.target_alert_price)}")
    if holding.market_quote is not None:
        q = holding.market_quote
        lines.append(
            f"[cyan]Market quote:[/cyan] {format_money(q.median)} "
            f"[dim]({q.sales_count} obs, {format_money(q.min_price)} - {format_money(q.max_price)})[/dim]"
        )

    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold]{holding.name}[/bold] [dim]{short_id(holding.id)}[/dim]",
            border_style=BORDER_PRIMARY,
            padding=PANEL_PADDING,
        )
    )

    lots_table = Table(title="Purchases")
    lots_table.add_column("Lot", style="dim")
    lots_table.add_column("Date")
    lots_table.add_column("Qty", justify="right")
    lots_table.add_column("Unit Price", justify="right")
    lots_table.add_column("Source")
    for lot in holding.lots:
        lots_table.add_row(
            short_id(lot.id), lot.purchase_date.isoformat(), str(lot.quantity),
            format_money(lot.unit_price), lot.source or "-",
        )
    console.print(lots_table)

    if holding.sales:
        sales_table = Table(title="Sales")
        sales_table.add_column("Sale", style="dim")
        sales_table.add_column("Date")
        sales_table.add_column("Platform")
        sales_table.add_column("Qty", justify="right")
        sales_table.add_column("Gross", justify="right")
        sales_table.add_column("Fees", justify="right")
        sales_table.add_column("Net", justify="right")
        for sale in holding.sales:
            sales_table.add_row(
                short_id(sale.id), sale.sale_date.isoformat(), platform_label(sale.platform),
                str(sale.quantity), format_money(sale.gross_amount),
                format_money(sale.fee_amount), format_money(sale.net_amount),
            )
        console.print(sales_table)

    if holding.price_history:
        history = ", ".join(
            f"{snap.as_of.isoformat()}: {format_money(snap.price)}"
            for snap in holding.price_history[-5:]
        )
        console.print(f"[dim]Recent estimates: {history}[/dim]")


@collection.command("list")
@click.option(
    "--sort-by",
    type=click.Choice(list(SORT_FIELDS)),
    default="value",
    help="Sort field",
)
@click.option(
    "--category", "-c",
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    default=None,
    help="Only this category",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def collection_list(ctx: click.Context, sort_by: str, category: Optional[str], as_json: bool) -> None:
    """List holdings with value and P&L."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    details = manager.get_holdings(sort_by=sort_by, category=category)

    if as_json:
        data = [
            {
                "id": d.holding.id,
                "name": d.holding.name,
                "category": d.holding.category.value,
                "metrics": _metrics_dict(d.metrics),
            }
            for d in details
        ]
        console.print(json.dumps(data, indent=2))
        return

    if not details:
        console.print("[yellow]No holdings in collection[/yellow]")
        console.print("[dim]Run `vaultfolio collection add NAME -p PRICE` to add one[/dim]")
        return

    table = Table(title="Collection")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Held", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Estimate", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Total P&L", justify="right")
    table.add_column("P&L %", justify="right")

    for d in details:
        table.add_row(
            short_id(d.holding.id),
            d.holding.name,
            d.holding.category.value,
            str(d.metrics.remaining_quantity),
            format_money(d.metrics.average_cost),
            format_money(d.holding.current_estimate),
            format_money(d.metrics.current_value),
            colored_pnl(d.metrics.total_pnl),
            colored_pct(d.metrics.total_pnl_pct),
        )

    console.print(table)


@collection.command("summary")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def collection_summary(ctx: click.Context, as_json: bool) -> None:
    """Show collection totals, P&L and best/worst performers."""
    console: Console = ctx.obj["console"]

    manager = CollectionManager()
    holdings = manager.list_holdings()
    summary = manager.get_portfolio_summary()

    if as_json:
        data = {
            "total_cost": str(summary.total_cost),
            "total_current_value": str(summary.total_current_value),
            "total_pnl": str(summary.total_pnl),
            "total_pnl_pct": str(summary.total_pnl_pct),
            "realized_pnl": str(summary.realized_pnl),
            "unrealized_pnl": str(summary.unrealized_pnl),
            "fees_paid": str(summary.fees_paid),
            "position_count": summary.position_count,
            "units_held": summary.units_held,
            "in_profit": summary.in_profit,
            "in_loss": summary.in_loss,
            "best_performer": summary.best_performer.holding_id if summary.best_performer else None,
            "worst_performer": summary.worst_performer.holding_id if summary.worst_performer else None,
        }
        console.print(json.dumps(data, indent=2))
        return

    if summary.position_count == 0:
        console.print("[yellow]No holdings in collection[/yellow]")
        console.print("[dim]Run `vaultfolio collection add NAME -p PRICE` to add one[/dim]")
        return

    console.print(Panel.fit("[bold]Collection Summary[/bold]"))
    console.print()
    console.print(f"[cyan]Holdings:[/cyan] {summary.position_count} ({summary.units_held} units held)")
    console.print(f"[cyan]Total Cost:[/cyan] {format_money(summary.total_cost)}")
    console.print(f"[cyan]Current Value:[/cyan] {format_money(summary.total_current_value)}")
    console.print()
    console.print(f"[cyan]Realized P&L:[/cyan] {colored_pnl(summary.realized_pnl)}")
    console.print(f"[cyan]Unrealized P&L:[/cyan] {colored_pnl(summary.unrealized_pnl)}")
    console.print(
        f"[cyan]Total P&L:[/cyan] {colored_pnl(summary.total_pnl)} ({colored_pct(summary.total_pnl_pct)})"
    )
    console.print(f"[cyan]Fees Paid:[/cyan] {format_money(summary.fees_paid)}")
    console.print()
    console.print(
        f"[green]In profit: {summary.in_profit}[/green]  [red]At a loss: {summary.in_loss}[/red]"
    )
    if summary.best_performer:
        console.print(
            f"[cyan]Best:[/cyan] {summary.best_performer.name} "
            f"({format_pct(summary.best_performer.total_pnl_pct)})"
        )
    if summary.worst_performer:
        console.print(
            f"[cyan]Worst:[/cyan] {summary.worst_performer.name} "
            f"({format_pct(summary.worst_performer.total_pnl_pct)})"
        )

    if summary.total_current_value > 0:
        console.print()
        names = {h.id: h.name for h in holdings}
        table = Table(title="Allocation")
        table.add_column("Holding", style="cyan")
        table.add_column("Share", justify="right")
        table.add_column("")
        for holding_id, pct in sorted(summary.allocation.items(), key=lambda kv: kv[1], reverse=True):
            table.add_row(names[holding_id], format_pct(pct).lstrip("+"), make_progress_bar(float(pct), 100.0))
        console.print(table)


@collection.command("platforms")
@click.pass_context
@handle_cli_errors
def collection_platforms(ctx: click.Context) -> None:
    """List sales platforms and their fee rates."""
    console: Console = ctx.obj["console"]

    table = Table(title="Sales Platforms")
    table.add_column("Key", style="cyan")
    table.add_column("Platform")
    table.add_column("Fee", justify="right")
    for key, rate in sorted(get_fee_table().items()):
        table.add_row(key, platform_label(key), format_rate(rate))
    console.print(table)
