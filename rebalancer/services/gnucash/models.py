"""In-memory records read out of a GnuCash book."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from rebalancer.exceptions import PricingError
from rebalancer.utils.decimals import frac_to_quantity

# SQLite books use CURRENCY, XML books use the ISO 4217 namespace
CURRENCY_NAMESPACES = frozenset({"CURRENCY", "ISO4217"})
INVESTMENT_NAMESPACE = "FUND"


@dataclass(frozen=True)
class Commodity:
    """A tradeable commodity (fund, currency, ...) as GnuCash records it.

    Attributes:
        symbol: Mnemonic, e.g. "VTSAX" or "USD"
        namespace: "FUND", "CURRENCY", "ISO4217", ...
        name: Full name; falls back to the symbol when the book has none
    """

    symbol: str
    namespace: str | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.symbol)

    @property
    def is_investment(self) -> bool:
        return self.namespace == INVESTMENT_NAMESPACE

    def is_currency(self, code: str) -> bool:
        return self.namespace in CURRENCY_NAMESPACES and self.symbol == code


@dataclass(frozen=True)
class Price:
    """Price of one commodity, quoted in another, at a point in time."""

    commodity: Commodity
    currency: Commodity
    value: Decimal
    time: datetime

    @property
    def is_in_usd(self) -> bool:
        return self.currency.is_currency("USD")


class PriceDatabase:
    """Keeps the most recent price seen for each commodity."""

    def __init__(self) -> None:
        self._last_price_by_symbol: dict[str, Price] = {}

    def __len__(self) -> int:
        return len(self._last_price_by_symbol)

    def add_price(self, price: Price) -> bool:
        """Record a price unless a newer one is already known.

        Returns:
            True if the price became the latest for its commodity
        """
        existing = self._last_price_by_symbol.get(price.commodity.symbol)
        if existing is not None and price.time < existing.time:
            return False
        self._last_price_by_symbol[price.commodity.symbol] = price
        return True

    def last_price(self, commodity: Commodity) -> Price | None:
        return self._last_price_by_symbol.get(commodity.symbol)


@dataclass(frozen=True)
class ComputedSplit:
    """A split whose value and quantity are already Decimals."""

    account_guid: str
    value: Decimal
    quantity: Decimal


@dataclass(frozen=True)
class LazySplit:
    """A split holding GnuCash fraction strings ('1109/100').

    Parsing fractions is comparatively slow and most splits in a large XML
    book belong to accounts we never value, so parsing waits for resolve().
    """

    account_guid: str
    value_fraction: str
    quantity_fraction: str

    def resolve(self) -> ComputedSplit:
        return ComputedSplit(
            account_guid=self.account_guid,
            value=frac_to_quantity(self.value_fraction),
            quantity=frac_to_quantity(self.quantity_fraction),
        )


Split = ComputedSplit | LazySplit


def resolve_split(split: Split) -> ComputedSplit:
    if isinstance(split, LazySplit):
        return split.resolve()
    return split


@dataclass
class Account:
    """An investment account: a commodity and the splits moving it."""

    guid: str
    name: str
    commodity: Commodity | None = None
    splits: list[Split] = field(default_factory=list)

    @property
    def is_investment(self) -> bool:
        return self.commodity is not None and self.commodity.is_investment

    def add_split(self, split: Split) -> None:
        self.splits.append(split)

    def current_quantity(self) -> Decimal:
        return sum((resolve_split(split).quantity for split in self.splits), Decimal("0"))

    def current_value(self, last_known_price: Price) -> Decimal:
        """Value the account's shares at the given price.

        Raises:
            PricingError: if the account has no commodity, or the price is
                for a different commodity
        """
        if self.commodity is None:
            raise PricingError(f"Can't value account {self.name!r} without a commodity")
        if self.commodity.symbol != last_known_price.commodity.symbol:
            raise PricingError(
                f"Price for {last_known_price.commodity.symbol} cannot value "
                f"{self.commodity.symbol} account {self.name!r}"
            )
        return self.current_quantity() * last_known_price.value


@dataclass
class BookData:
    """Investment accounts (with their splits) and USD fund prices read from a book."""

    accounts: list[Account] = field(default_factory=list)
    prices: list[Price] = field(default_factory=list)
