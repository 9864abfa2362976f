"""Market price lookup interface and quote summarization."""

from vaultfolio.core.pricing.quotes import PriceSource, summarize_prices

__all__ = ["PriceSource", "summarize_prices"]
