from .portfolio import AllocationRow, HoldingRow, PortfolioPresenter

__all__ = [
    "AllocationRow",
    "HoldingRow",
    "PortfolioPresenter",
]
