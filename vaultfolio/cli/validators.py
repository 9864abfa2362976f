"""
Input parsing utilities for CLI commands.

Provides reusable Click parameter types for:
- Currency amounts (parsed straight to Decimal, never through float)
- ISO calendar dates
- Platform keys from the fee table

Range checks (positive prices, quantities) are left to the valuation engine
so the CLI reports exactly the same rejections as any other caller.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

import click

from vaultfolio.core.portfolio.fees import get_fee_table


class MoneyType(click.ParamType):
    """Click parameter type for currency amounts."""

    name = "amount"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        text = str(value).strip().replace(",", ".")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            self.fail(f"Invalid amount: {value!r}", param, ctx)
        if not amount.is_finite():
            self.fail(f"Invalid amount: {value!r}", param, ctx)
        return amount


class IsoDateType(click.ParamType):
    """Click parameter type for YYYY-MM-DD dates."""

    name = "date"

    def convert(self, value, param, ctx):
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            self.fail(f"Invalid date {value!r}. Use YYYY-MM-DD", param, ctx)


class PlatformType(click.ParamType):
    """Click parameter type for sales platforms known to the fee table."""

    name = "platform"

    def convert(self, value, param, ctx):
        key = str(value).strip().lower()
        known = get_fee_table()
        if key not in known:
            self.fail(
                f"Unknown platform {value!r}. Choose from: {', '.join(sorted(known))}",
                param,
                ctx,
            )
        return key


def validate_text_length(
    value: Optional[str],
    max_length: int,
    field_name: str,
) -> Optional[str]:
    """
    Validate text against a maximum length.

    Raises:
        click.BadParameter: If value exceeds max_length
    """
    if value is not None and len(value) > max_length:
        raise click.BadParameter(
            f"{field_name} exceeds maximum length of {max_length} characters"
        )
    return value


# Singleton instances for reuse
MONEY = MoneyType()
ISO_DATE = IsoDateType()
PLATFORM = PlatformType()
