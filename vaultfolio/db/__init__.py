"""
Database module for Vaultfolio.

Provides SQLModel definitions and connection management for holding persistence.
"""

from vaultfolio.db.database import get_engine, get_session, init_db, reset_engine
from vaultfolio.db.models import (
    AlertHistory,
    HoldingRow,
    LotRow,
    PriceSnapshotRow,
    SaleRow,
    Spot,
)

__all__ = [
    # Models
    "AlertHistory",
    "HoldingRow",
    "LotRow",
    "PriceSnapshotRow",
    "SaleRow",
    "Spot",
    # Database
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
