"""
Configuration management for Vaultfolio.

Centralizes all configuration from environment variables with sensible defaults.
This is the SINGLE SOURCE OF TRUTH for all application configuration.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """
    Application configuration loaded from environment variables.

    Optional:
        VAULTFOLIO_DB_PATH: Path to SQLite database
        VAULTFOLIO_CURRENCY: ISO currency code used for display
        VAULTFOLIO_FEE_RATES: Fee table overrides, e.g. "ebay=0.128,vinted=0.05"
        VAULTFOLIO_LOG_LEVEL: Root logging level for the CLI
    """

    # Storage
    db_path: Path = field(
        default_factory=lambda: Path(
            os.getenv("VAULTFOLIO_DB_PATH", "./data/vaultfolio.db")
        )
    )

    # Display
    currency: str = field(
        default_factory=lambda: os.getenv("VAULTFOLIO_CURRENCY", "EUR")
    )

    # ========================================================================
    # Sales platforms
    # Raw override string; parsed by core.portfolio.fees.get_fee_table()
    # ========================================================================
    fee_rate_overrides: str = field(
        default_factory=lambda: os.getenv("VAULTFOLIO_FEE_RATES", "")
    )

    # Logging
    log_level: str = field(
        default_factory=lambda: os.getenv("VAULTFOLIO_LOG_LEVEL", "WARNING")
    )

    def __post_init__(self) -> None:
        """Normalize string values."""
        if isinstance(self.db_path, str):
            self.db_path = Path(self.db_path)
        self.currency = self.currency.strip().upper() or "EUR"
        self.log_level = self.log_level.strip().upper() or "WARNING"

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ConfigError: If the log level or fee overrides are invalid.
        """
        from vaultfolio.core.exceptions import ConfigError
        from vaultfolio.core.portfolio.fees import parse_fee_overrides

        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"Invalid VAULTFOLIO_LOG_LEVEL: {self.log_level!r}")

        parse_fee_overrides(self.fee_rate_overrides)

    def ensure_directories(self) -> None:
        """Create data directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
config = Config()
