"""
Pytest configuration and shared fixtures for Vaultfolio tests.

This module provides common fixtures used across all test modules,
including holding builders, database fixtures, and the CLI runner.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest

from vaultfolio.core.portfolio.models import Holding, PurchaseLot, SaleRecord
from vaultfolio.core.portfolio.valuation import create_holding

# Fee table used by engine tests; independent of configuration.
TEST_FEE_RATES = {
    "direct": Decimal("0"),
    "vinted": Decimal("0.05"),
    "ebay": Decimal("0.13"),
}


# ==============================================================================
# Autouse Fixtures - Run automatically for all tests
# ==============================================================================


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for testing."""
    monkeypatch.setenv("VAULTFOLIO_DB_PATH", ":memory:")
    monkeypatch.delenv("VAULTFOLIO_FEE_RATES", raising=False)

    from vaultfolio.config import config

    monkeypatch.setattr(config, "fee_rate_overrides", "")
    monkeypatch.setattr(config, "currency", "EUR")


# ==============================================================================
# Holding Fixtures
# ==============================================================================


@pytest.fixture
def make_lot():
    """Factory for purchase lots."""

    def _make(price="100", quantity=1, purchase_date=date(2024, 1, 10), source="") -> PurchaseLot:
        return PurchaseLot.new(price, quantity, purchase_date, source)

    return _make


@pytest.fixture
def make_sale():
    """Factory for sales priced with TEST_FEE_RATES."""

    def _make(price="140", quantity=1, platform="direct", sale_date=date(2024, 3, 1)) -> SaleRecord:
        return SaleRecord.new(price, quantity, platform, sale_date, TEST_FEE_RATES)

    return _make


@pytest.fixture
def etb_holding(make_lot) -> Holding:
    """One lot of 2 units at 100, estimated at 150."""
    return create_holding(
        "Evolving Skies ETB",
        "Elite Trainer Box",
        make_lot("100", 2),
        current_estimate="150",
    )


@pytest.fixture
def fee_rates() -> dict:
    """Copy of the fee table used to price test sales."""
    return dict(TEST_FEE_RATES)


# ==============================================================================
# Database Fixtures
# ==============================================================================


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "test_vaultfolio.db"


@pytest.fixture
def tmp_db(tmp_db_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """
    Set up a temporary database for testing.

    Monkeypatches the database path and initializes the schema.
    """
    monkeypatch.setenv("VAULTFOLIO_DB_PATH", str(tmp_db_path))

    # The config singleton reads the environment at import time
    from vaultfolio.config import config

    monkeypatch.setattr(config, "db_path", tmp_db_path)

    from vaultfolio.db.database import reset_engine

    reset_engine()

    from vaultfolio.db import init_db

    init_db()

    yield tmp_db_path

    # Cleanup
    reset_engine()
    if tmp_db_path.exists():
        tmp_db_path.unlink()


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
