"""Shared CLI error handling decorator.

Catches rejected edits and unexpected exceptions in one place so every
command reports errors the same way. Commands can still handle
command-specific exceptions internally before the decorator catches the rest.

Usage:
    @click.command()
    @click.pass_context
    @handle_cli_errors
    def my_command(ctx, ...):
        ...
"""

import functools
import logging

import click
from rich.console import Console

from vaultfolio.core.exceptions import (
    ConfigError,
    NoPriceDataError,
    NotFoundError,
    OversellError,
    VaultfolioError,
)

logger = logging.getLogger(__name__)


def handle_cli_errors(f):
    """Decorator that catches CLI exceptions with Rich-formatted output.

    Rejected edits (validation errors) exit with status 1 after a one-line
    message; unexpected exceptions are logged with traceback first.

    Must be applied AFTER @click.pass_context so the console can be taken
    from ctx.obj["console"].
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context(silent=True)
        console = ctx.obj["console"] if ctx and ctx.obj and "console" in ctx.obj else Console()

        try:
            return f(*args, **kwargs)
        except SystemExit:
            raise  # Don't intercept explicit exits
        except click.exceptions.Exit:
            raise  # Don't intercept Click exits
        except click.ClickException:
            raise  # Click reports usage errors itself
        except click.exceptions.Abort:
            raise
        except OversellError as e:
            console.print(f"[red]Error: {e}[/red]")
            console.print(f"[dim]Remaining: {e.available}, requested: {e.requested}[/dim]")
            raise SystemExit(1)
        except NotFoundError as e:
            console.print(f"[red]Error: {e}[/red]")
            console.print("[dim]Run `vaultfolio collection list` to see ids[/dim]")
            raise SystemExit(1)
        except NoPriceDataError as e:
            console.print(f"[yellow]No price data:[/yellow] {e}")
            raise SystemExit(1)
        except ConfigError as e:
            console.print(f"[red]Configuration Error:[/red] {e}")
            raise SystemExit(1)
        except (VaultfolioError, ValueError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise SystemExit(1)
        except Exception as e:
            logger.exception("Unexpected error in %s command", f.__name__)
            console.print(f"[red]Unexpected error:[/red] {e}")
            raise SystemExit(1)

    return wrapper
