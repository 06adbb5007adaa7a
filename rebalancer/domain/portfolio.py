from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal

import structlog

from rebalancer.domain.allocation import Allocation
from rebalancer.domain.assets import Asset, AssetClass
from rebalancer.exceptions import DuplicateAssetClassError

logger = structlog.get_logger(__name__)


class Portfolio:
    """Aggregate root: one point-in-time snapshot of allocations by asset class.

    Allocations are ordered by descending current value so that reports list
    the most significant classes first. The target ratio sum is not validated
    here; the rebalancing engine checks it when a rebalance is requested.
    """

    def __init__(self, allocations: Iterable[Allocation]) -> None:
        allocations = list(allocations)

        seen: set[AssetClass] = set()
        for allocation in allocations:
            if allocation.asset_class in seen:
                raise DuplicateAssetClassError(
                    f"Portfolio already has an allocation for {allocation.asset_class}"
                )
            seen.add(allocation.asset_class)

        self.allocations: list[Allocation] = sorted(
            allocations, key=lambda a: a.current_value(), reverse=True
        )

    def __iter__(self) -> Iterator[Allocation]:
        return iter(self.allocations)

    def __len__(self) -> int:
        return len(self.allocations)

    def __repr__(self) -> str:
        classes = ", ".join(a.asset_class.name for a in self.allocations)
        return f"<Portfolio [{classes}] value={self.current_value()}>"

    def current_value(self) -> Decimal:
        return sum((a.current_value() for a in self.allocations), Decimal("0"))

    def future_value(self) -> Decimal:
        return sum((a.future_value() for a in self.allocations), Decimal("0"))

    def sum_target_ratios(self) -> Decimal:
        return sum((a.target_ratio for a in self.allocations), Decimal("0"))

    def allocation_for(self, asset_class: AssetClass) -> Allocation | None:
        """Find the allocation tracking an asset class."""

        for allocation in self.allocations:
            if allocation.asset_class == asset_class:
                return allocation
        return None

    def minimum_addition_to_balance(self) -> Decimal:
        """Smallest deposit that brings every class to (or under) its target
        without withdrawing from any class.

        The most overweight class (relative to the current total) fixes the
        answer: the portfolio must grow until that class sits exactly at its
        target ratio. Returns 0 for an empty portfolio.
        """

        current_value = self.current_value()
        if current_value == 0:
            return Decimal("0")

        most_overweight = max(self.allocations, key=lambda a: a.exact_deviation(current_value))
        min_new_total = most_overweight.current_value() / most_overweight.target_ratio
        return min_new_total - current_value

    @classmethod
    def from_holdings(
        cls,
        holdings: Iterable[Asset],
        targets: Mapping[AssetClass, Decimal],
    ) -> Portfolio:
        """Factory method to classify holdings into one allocation per target class.

        Holdings in asset classes without a target are left out of the portfolio.
        """

        by_asset_class = {
            asset_class: Allocation(asset_class=asset_class, target_ratio=ratio)
            for asset_class, ratio in targets.items()
        }

        for asset in holdings:
            allocation = by_asset_class.get(asset.asset_class)
            if allocation is None:
                logger.info(
                    "holding_skipped_untracked_class",
                    holding=asset.name,
                    asset_class=asset.asset_class.name,
                )
                continue
            allocation.add_asset(asset)

        return cls(by_asset_class.values())
