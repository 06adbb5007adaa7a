from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from rebalancer.exceptions import UnknownAssetClassError


class AssetClass(Enum):
    """Broad category of investments (e.g., US Stocks, Bonds)."""

    US_BONDS = "US Bonds"
    US_TOTAL = "US Total Market"
    US_SMALL = "US Small/Mid Cap"
    US_STOCKS = "US Stocks"
    INTL_BONDS = "International Bonds"
    INTL_STOCKS = "International Stocks"
    REIT = "REIT"
    TARGET = "Target Date"
    CASH = "Cash"

    @property
    def label(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.label

    @classmethod
    def parse(cls, text: str) -> AssetClass:
        """Resolve a member name ('US_BONDS') or label ('US Bonds'), ignoring case."""

        needle = text.strip().casefold()
        for member in cls:
            if needle in (member.name.casefold(), member.label.casefold()):
                return member
        raise UnknownAssetClassError(f"Unknown asset class: {text!r}")


@dataclass(frozen=True)
class Asset:
    """A single priced holding contributing value to an asset class.

    Attributes:
        name: Display name (typically the account name in the book)
        value: Market value; zero represents an empty account
        asset_class: Asset class this holding belongs to
        symbol: Ticker symbol, when known
        quantity: Number of shares held (display only)
        last_price: Price per share used to value the holding (display only)
        priced_at: When last_price was quoted (display only)
    """

    name: str
    value: Decimal
    asset_class: AssetClass
    symbol: str | None = None
    quantity: Decimal | None = None
    last_price: Decimal | None = None
    priced_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate holding data."""
        if self.value < 0:
            raise ValueError(f"Asset value must be non-negative, got {self.value}")

    def sort_key(self) -> tuple[str, Decimal]:
        """Order by name ascending, then by value descending."""
        return (self.name, -self.value)
