class RebalancerError(Exception):
    """Base exception for all rebalancer related errors."""

    pass


class AllocationError(RebalancerError):
    """Raised when target allocations are malformed (e.g., sum != 100%)."""

    pass


class ClassMismatchError(AllocationError):
    """Raised when an asset is added to an allocation of a different asset class."""

    pass


class ImbalancedTargetsError(AllocationError):
    """Raised when target ratios do not sum to exactly 1."""

    pass


class InvalidTargetRatioError(AllocationError):
    """Raised when a target ratio falls outside (0, 1]."""

    pass


class DuplicateAssetClassError(AllocationError):
    """Raised when a portfolio holds two allocations for the same asset class."""

    pass


class ContributionError(RebalancerError):
    """Raised when a deposit or withdrawal cannot be distributed."""

    pass


class ZeroContributionError(ContributionError):
    """Raised when asked to rebalance with a contribution of zero."""

    pass


class OverWithdrawalError(ContributionError):
    """Raised when a withdrawal meets or exceeds the portfolio's value."""

    pass


class NegativeBalanceError(ContributionError):
    """Raised when the portfolio's current value is negative."""

    pass


class BookError(RebalancerError):
    """Raised when the accounting book cannot be read."""

    pass


class InvalidRatioError(BookError):
    """Raised when a GnuCash fraction (e.g. '1109/100') cannot be parsed."""

    pass


class IncompleteRatioError(InvalidRatioError):
    """Raised when a GnuCash fraction lacks a numerator or denominator."""

    pass


class InvalidTimestampError(BookError):
    """Raised when a GnuCash timestamp matches none of the known formats."""

    pass


class UnsupportedBookFormatError(BookError):
    """Raised for book formats other than sqlite3 and xml."""

    pass


class ExpenseAccountNotFoundError(BookError):
    """Raised when a top-level expense account (e.g. Taxes) is missing."""

    pass


class PricingError(RebalancerError):
    """Raised when there is an issue with pricing data (e.g., missing price)."""

    pass


class ClassificationError(RebalancerError):
    """Raised when a symbol or label cannot be mapped to an asset class."""

    pass


class UnknownSymbolError(ClassificationError):
    """Raised when no asset class is known for a ticker symbol."""

    pass


class UnknownAssetClassError(ClassificationError):
    """Raised when text does not name an asset class."""

    pass
