"""
Vaultfolio CLI - sealed collectibles portfolio tracker.

Entry point for the command-line interface. Provides commands for:
- Holdings, purchase lots and sales (with platform fees)
- Market estimates, quotes and target price alerts
- Collection summary and P&L
- Purchase spots
- CSV export
- Database setup

Usage:
    vaultfolio --help
    vaultfolio db init
    vaultfolio collection add "Evolving Skies ETB" -c "Elite Trainer Box" -p 49.99 -q 2
    vaultfolio collection sell 3f2a -p 140 --platform ebay
    vaultfolio collection summary
    vaultfolio spots list
    vaultfolio alerts history
    vaultfolio export holdings -o holdings.csv
"""

import logging
from collections import OrderedDict

import click
from rich.console import Console

from vaultfolio import __version__
from vaultfolio.cli.commands import alerts, collection, db, export, spots
from vaultfolio.config import config
from vaultfolio.core.exceptions import ConfigError
from vaultfolio.db.database import init_db


class OrderedGroup(click.Group):
    """Custom group that displays commands in organized categories."""

    COMMAND_GROUPS: OrderedDict[str, list[str]] = OrderedDict([
        ("Tracking", ["collection", "spots"]),
        ("Monitoring", ["alerts"]),
        ("Data", ["export", "db"]),
    ])

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Write commands in organized groups."""
        for group_name, cmd_names in self.COMMAND_GROUPS.items():
            commands = []
            for cmd_name in cmd_names:
                cmd = self.get_command(ctx, cmd_name)
                if cmd:
                    help_text = cmd.get_short_help_str(limit=formatter.width)
                    commands.append((cmd_name, help_text))

            if commands:
                with formatter.section(group_name):
                    formatter.write_dl(commands)

# Global console for rich output
console = Console()


@click.group(cls=OrderedGroup)
@click.version_option(version=__version__, prog_name="vaultfolio")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    Vaultfolio - track a sealed collectibles collection.

    Record what you bought and sold, keep market estimates current and
    see realized and unrealized P&L after platform fees.

    \b
    Examples:
        vaultfolio collection add "Crown Zenith ETB" -p 54.90 -q 3
        vaultfolio collection estimate "Crown Zenith ETB" 72
        vaultfolio collection list --sort-by pnl
        vaultfolio collection summary --json
        vaultfolio spots add "Gamemania" --rating 4
    """
    ctx.ensure_object(dict)
    ctx.obj["console"] = console

    try:
        config.validate()
    except ConfigError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        raise SystemExit(1)

    init_db()


# Register command groups
cli.add_command(collection.collection)
cli.add_command(spots.spots)
cli.add_command(alerts.alerts)
cli.add_command(export.export)
cli.add_command(db.db)


def setup_logging(level: str) -> None:
    """Configure root logging on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main() -> None:
    """Main entry point for CLI."""
    setup_logging(config.log_level)
    cli()


if __name__ == "__main__":
    main()
