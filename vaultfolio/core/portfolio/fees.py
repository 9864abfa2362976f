"""
Sales platform fee table.

Maps a platform key to the share of gross proceeds the platform keeps.
The table is configuration, not engine state: SaleRecord.new() reads it
once and freezes the resulting amounts into the record.
"""

from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from vaultfolio.core.exceptions import ConfigError, UnknownPlatformError

# Direct sales (hand to hand, local classifieds) carry no platform cut.
DEFAULT_FEE_RATES: dict[str, Decimal] = {
    "direct": Decimal("0"),
    "leboncoin": Decimal("0"),
    "vinted": Decimal("0.05"),
    "cardmarket": Decimal("0.05"),
    "ebay": Decimal("0.13"),
}

PLATFORM_LABELS: dict[str, str] = {
    "direct": "Direct sale",
    "leboncoin": "Leboncoin",
    "vinted": "Vinted",
    "cardmarket": "Cardmarket",
    "ebay": "eBay",
}


def _validate_rate(platform: str, rate: Decimal) -> Decimal:
    if not rate.is_finite() or not (Decimal("0") <= rate <= Decimal("1")):
        raise ConfigError(f"Fee rate for {platform!r} must be between 0 and 1, got {rate}")
    return rate


def parse_fee_overrides(raw: str) -> dict[str, Decimal]:
    """
    Parse a ``platform=rate,platform=rate`` override string.

    Args:
        raw: Override string (empty means no overrides)

    Returns:
        Dict of lowercase platform key -> Decimal rate

    Raises:
        ConfigError: If an entry is malformed or a rate is outside [0, 1]
    """
    overrides: dict[str, Decimal] = {}
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise ConfigError(f"Invalid fee rate entry {entry!r}, expected platform=rate")
        key, _, value = entry.partition("=")
        key = key.strip().lower()
        if not key:
            raise ConfigError(f"Invalid fee rate entry {entry!r}, platform is empty")
        try:
            rate = Decimal(value.strip())
        except InvalidOperation as e:
            raise ConfigError(f"Invalid fee rate for {key!r}: {value.strip()!r}") from e
        overrides[key] = _validate_rate(key, rate)
    return overrides


def get_fee_table() -> dict[str, Decimal]:
    """Return the default fee table merged with configured overrides."""
    from vaultfolio.config import config

    table = dict(DEFAULT_FEE_RATES)
    table.update(parse_fee_overrides(config.fee_rate_overrides))
    return table


def fee_rate_for(platform: str, fee_rates: Optional[Mapping[str, Decimal]] = None) -> Decimal:
    """
    Look up the fee rate for a platform.

    Args:
        platform: Platform key (case-insensitive)
        fee_rates: Table to search (defaults to get_fee_table())

    Raises:
        UnknownPlatformError: If the platform is not in the table
    """
    table = fee_rates if fee_rates is not None else get_fee_table()
    key = platform.strip().lower()
    if key not in table:
        raise UnknownPlatformError(platform, list(table))
    return Decimal(str(table[key]))


def platform_label(platform: str) -> str:
    """Human-readable platform name, falling back to the key itself."""
    return PLATFORM_LABELS.get(platform, platform)
