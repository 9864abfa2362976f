"""Centralized formatting utilities for CLI output.

Provides consistent colors, indicators, and money formatting across all CLI
commands. This is the only place amounts are rounded for display.
"""

from decimal import Decimal
from typing import Optional

from vaultfolio.config import config
from vaultfolio.utils.money import round_money, round_pct


# =============================================================================
# Standard Padding & Borders
# =============================================================================

PANEL_PADDING = (1, 2)

BORDER_PRIMARY = "blue"      # Main content panels
BORDER_SUCCESS = "green"     # Success/confirmation panels
BORDER_WARNING = "yellow"    # Warning panels

# Missing value indicator
MISSING = "-"


# =============================================================================
# Money & Percentages
# =============================================================================


def format_money(value: Optional[Decimal], currency: Optional[str] = None) -> str:
    """Format an amount as ``1,234.50 EUR``."""
    if value is None:
        return MISSING
    return f"{round_money(value):,.2f} {currency or config.currency}"


def format_signed_money(value: Decimal, currency: Optional[str] = None) -> str:
    """Format an amount with an explicit sign, e.g. ``+21.80 EUR``."""
    rounded = round_money(value)
    sign = "+" if rounded >= 0 else "-"
    return f"{sign}{abs(rounded):,.2f} {currency or config.currency}"


def format_pct(value: Decimal) -> str:
    """Format a percentage with sign and one decimal, e.g. ``+50.0%``."""
    rounded = round_pct(value)
    sign = "+" if rounded >= 0 else "-"
    return f"{sign}{abs(rounded)}%"


def format_rate(rate: Decimal) -> str:
    """Format a fee rate (0.13) as a percentage (13%)."""
    pct = (Decimal(rate) * 100).normalize()
    return f"{pct:f}%"


def get_pnl_color(value: Decimal) -> str:
    """Green for gains (including break-even), red for losses."""
    return "green" if value >= 0 else "red"


def colored_pnl(value: Decimal, currency: Optional[str] = None) -> str:
    """Rich markup for a signed P&L amount."""
    color = get_pnl_color(value)
    return f"[{color}]{format_signed_money(value, currency)}[/{color}]"


def colored_pct(value: Decimal) -> str:
    """Rich markup for a signed P&L percentage."""
    color = get_pnl_color(value)
    return f"[{color}]{format_pct(value)}[/{color}]"


# =============================================================================
# Indicators (ASCII-safe for Windows compatibility)
# =============================================================================


def format_rating(rating: int, max_rating: int = 5) -> str:
    """Star rating using ASCII characters, e.g. ``***oo``."""
    rating = max(0, min(rating, max_rating))
    return "*" * rating + "o" * (max_rating - rating)


def make_progress_bar(value: float, max_value: float, width: int = 10) -> str:
    """Create a text-based progress bar using ASCII characters."""
    if max_value <= 0:
        return "-" * width
    filled = max(0, min(width, int((value / max_value) * width)))
    return "#" * filled + "-" * (width - filled)


def short_id(item_id: str, length: int = 8) -> str:
    """Abbreviate an opaque id for table display."""
    return item_id[:length]
