"""
Portfolio valuation for collectible holdings.

Exports the domain models, the pure valuation engine and the portfolio
summary. CollectionManager (persistence-backed) lives in
vaultfolio.core.portfolio.manager to keep this package import-light.
"""

from vaultfolio.core.portfolio.models import (
    Category,
    Holding,
    MarketQuote,
    PriceSnapshot,
    PurchaseLot,
    SaleRecord,
)
from vaultfolio.core.portfolio.summary import PortfolioSummary, portfolio_summary
from vaultfolio.core.portfolio.valuation import (
    EstimateUpdate,
    HoldingMetrics,
    PriceAlert,
    apply_market_quote,
    compute_holding_metrics,
    create_holding,
    delete_lot,
    delete_sale,
    edit_lot,
    record_purchase,
    record_sale,
    set_target_alert_price,
    update_current_estimate,
)

__all__ = [
    # Models
    "Category",
    "Holding",
    "MarketQuote",
    "PriceSnapshot",
    "PurchaseLot",
    "SaleRecord",
    # Engine
    "EstimateUpdate",
    "HoldingMetrics",
    "PriceAlert",
    "apply_market_quote",
    "compute_holding_metrics",
    "create_holding",
    "delete_lot",
    "delete_sale",
    "edit_lot",
    "record_purchase",
    "record_sale",
    "set_target_alert_price",
    "update_current_estimate",
    # Summary
    "PortfolioSummary",
    "portfolio_summary",
]
