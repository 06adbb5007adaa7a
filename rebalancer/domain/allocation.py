from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction

from rebalancer.domain.assets import Asset, AssetClass
from rebalancer.exceptions import ClassMismatchError, InvalidTargetRatioError


@dataclass
class Allocation:
    """One asset class's target ratio, the holdings classified into it, and
    the contribution (or withdrawal) computed for it by the rebalancing engine.

    Ratios are expressed on a 0-1 scale (not 0-100).
    """

    asset_class: AssetClass
    target_ratio: Decimal
    underlying_assets: list[Asset] = field(default_factory=list)
    future_contribution: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if not Decimal("0") < self.target_ratio <= Decimal("1"):
            raise InvalidTargetRatioError(
                f"Target ratio for {self.asset_class} must be in (0, 1], got {self.target_ratio}"
            )
        for asset in self.underlying_assets:
            self._check_class(asset)
        self.underlying_assets = sorted(self.underlying_assets, key=Asset.sort_key)

    def _check_class(self, asset: Asset) -> None:
        if asset.asset_class != self.asset_class:
            raise ClassMismatchError(
                f"Cannot add {asset.asset_class} asset {asset.name!r} "
                f"to {self.asset_class} allocation"
            )

    def add_asset(self, asset: Asset) -> None:
        self._check_class(asset)
        self.underlying_assets.append(asset)
        self.underlying_assets.sort(key=Asset.sort_key)

    def add_contribution(self, amount: Decimal) -> None:
        self.future_contribution += amount

    def current_value(self) -> Decimal:
        """Sum of underlying asset values."""

        return sum((asset.value for asset in self.underlying_assets), Decimal("0"))

    def future_value(self) -> Decimal:
        """Current value plus any pending contribution."""

        return self.current_value() + self.future_contribution

    def target_value_for(self, grand_total: Decimal) -> Decimal:
        """Return the value this class should hold for a given portfolio total."""

        return grand_total * self.target_ratio

    def percent_holdings(self, grand_total: Decimal) -> Decimal:
        """Share of grand_total held by this class once contributions settle.

        grand_total must be non-zero.
        """

        return self.future_value() / grand_total

    def deviation(self, grand_total: Decimal) -> Decimal:
        """Signed distance from target, relative to the target itself.

        -0.20 means 20% underweight relative to this class's own target;
        +0.50 means 50% overweight.
        """

        return self.percent_holdings(grand_total) / self.target_ratio - 1

    def exact_deviation(self, grand_total: Decimal | Fraction) -> Fraction:
        """deviation() as an exact rational, free of quotient rounding."""

        target_value = Fraction(grand_total) * Fraction(self.target_ratio)
        return Fraction(self.future_value()) / target_value - 1
