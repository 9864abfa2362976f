"""CSV export commands."""

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from vaultfolio.cli.error_handler import handle_cli_errors
from vaultfolio.core.portfolio.manager import CollectionManager
from vaultfolio.utils.csv_export import EXPORTERS, sanitize_csv_dataframe

logger = logging.getLogger(__name__)


@click.command()
@click.argument("dataset", type=click.Choice(list(EXPORTERS)))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (defaults to stdout)",
)
@click.pass_context
@handle_cli_errors
def export(ctx: click.Context, dataset: str, output: Optional[Path]) -> None:
    """
    Export holdings, lots or sales as CSV.

    Amounts are rounded to cents. Text cells that a spreadsheet would
    read as a formula are prefixed with a quote.

    \b
    Examples:
        vaultfolio export holdings -o holdings.csv
        vaultfolio export sales
    """
    console: Console = ctx.obj["console"]

    holdings = CollectionManager().list_holdings()
    df = sanitize_csv_dataframe(EXPORTERS[dataset](holdings))

    if output is None:
        click.echo(df.to_csv(index=False), nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output, index=False)
    logger.info(f"Exported {len(df)} {dataset} rows to {output}")
    console.print(f"[green]Exported {len(df)} row(s) to {output}[/green]")
