"""Utility modules for Vaultfolio."""

from vaultfolio.utils.money import round_money, round_pct

__all__ = [
    "round_money",
    "round_pct",
]
