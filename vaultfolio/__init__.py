"""
Vaultfolio - CLI-first collectible portfolio tracker.

Tracks purchase lots, resales and platform fees for sealed collectibles
and reports realized and unrealized profit/loss against a manually
maintained market estimate.
"""

__version__ = "0.1.0"
