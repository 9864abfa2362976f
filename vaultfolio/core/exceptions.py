"""
Custom exceptions for Vaultfolio.

Engine rejections derive from ValuationError, which is also a ValueError so
integration code can keep a single ``except ValueError`` around an edit.
"""


class VaultfolioError(Exception):
    """Base exception for all Vaultfolio errors."""

    pass


class ConfigError(VaultfolioError):
    """Raised when configuration values cannot be parsed."""

    pass


class ValuationError(VaultfolioError, ValueError):
    """Base exception for rejected holding edits."""

    pass


class InvalidLotError(ValuationError):
    """Raised when a purchase lot has a non-positive price or quantity."""

    pass


class InvalidSaleError(InvalidLotError):
    """
    Raised when a sale has a non-positive price or quantity.

    Subclasses InvalidLotError since sales follow the same quantity/price rules.
    """

    pass


class OversellError(ValuationError):
    """
    Raised when an edit would leave more units sold than purchased.

    Carries the requested and available quantities for display.
    """

    def __init__(self, requested: int, available: int, message: str = ""):
        self.requested = requested
        self.available = available
        super().__init__(
            message
            or f"Cannot sell {requested} unit(s): only {available} remaining"
        )


class NotFoundError(ValuationError):
    """Raised when a holding, lot, sale or spot id does not exist."""

    def __init__(self, kind: str, item_id: object):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")


class InvalidEstimateError(ValuationError):
    """Raised when a market estimate or alert target is negative."""

    pass


class InvalidHoldingError(ValuationError):
    """Raised when a holding name or category is invalid."""

    pass


class UnknownPlatformError(ValuationError):
    """Raised when a sale references a platform missing from the fee table."""

    def __init__(self, platform: str, known: list[str]):
        self.platform = platform
        self.known = known
        super().__init__(
            f"Unknown sales platform: {platform!r}. "
            f"Known platforms: {', '.join(sorted(known))}"
        )


class NoPriceDataError(VaultfolioError):
    """Raised when a price lookup yields no usable observations."""

    pass
