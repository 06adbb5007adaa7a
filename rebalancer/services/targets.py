"""
Target allocation builders.

Produces the asset-class → ratio table that the rebalancing engine balances
against. Ratios always sum to exactly 1.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.utils import timezone

import structlog

from rebalancer.domain.assets import AssetClass
from rebalancer.exceptions import AllocationError

if TYPE_CHECKING:
    from rebalancer.conf import RebalancerSettings

logger = structlog.get_logger(__name__)

ONE = Decimal("1")

# Share of the stock portion given to each equity class in the "core four".
# Total market funds are roughly 75% large cap, so a 33/17 split of the US
# portion keeps large+giant cap at about half of US stocks.
CORE_FOUR_STOCK_SPLIT: dict[AssetClass, Decimal] = {
    AssetClass.US_TOTAL: Decimal("0.33"),
    AssetClass.US_SMALL: Decimal("0.17"),
    AssetClass.INTL_STOCKS: Decimal("0.40"),
    AssetClass.REIT: Decimal("0.10"),
}


def age_in_weeks(birthday: date, today: date | None = None) -> int:
    today = today or timezone.localdate()
    if birthday >= today:
        raise ValueError("You were born in the future?")
    return (today - birthday).days // 7


def bond_allocation(birthday: date, from_years: int, today: date | None = None) -> Decimal:
    """
    Derive a bond ratio from the "N minus your age in stocks" rule.

    "Own your age in bonds" puts a 45 year old at 45% bonds. Using 110 or 120
    minus age as the stock percentage yields more aggressive allocations.

    Age is measured in weeks so that the allocation shifts gradually through
    the year, and the stock percentage is rounded to two decimal places with
    banker's rounding.

    Args:
        birthday: Investor's date of birth
        from_years: The N in "N minus your age" (e.g. 110, 120)
        today: Date to measure age at (defaults to today)

    Returns:
        Ratio of bonds, clamped to [0, 1]
    """
    age = Decimal(age_in_weeks(birthday, today)) / Decimal(52)

    stock_percent = (Decimal(from_years) - age).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_EVEN
    )
    stock_ratio = stock_percent.scaleb(-2)

    # Very young investors would get a negative bond allocation, very old
    # investors more than 100%. Keep within 0 -> 100%.
    if stock_ratio < 0:
        return ONE
    if stock_ratio > ONE:
        return Decimal("0")
    return ONE - stock_ratio


def core_four(ratio_bonds: Decimal) -> dict[AssetClass, Decimal]:
    """
    Split a portfolio following the "Core Four" lazy portfolio.

    Bonds receive ratio_bonds; the remainder goes 33% US total market,
    17% US small/mid cap, 40% international stocks and 10% REIT.
    Classes with no weight are left out of the table.
    """
    if ratio_bonds < 0:
        raise ValueError("Ratio must be positive")
    if ratio_bonds > ONE:
        raise ValueError("Ratio cannot exceed 100%")

    ratio_stocks = ONE - ratio_bonds

    targets = {AssetClass.US_BONDS: ratio_bonds}
    for asset_class, share in CORE_FOUR_STOCK_SPLIT.items():
        targets[asset_class] = share * ratio_stocks

    return {asset_class: ratio for asset_class, ratio in targets.items() if ratio > 0}


def parse_target_table(text: str) -> dict[AssetClass, Decimal]:
    """
    Parse an explicit target table.

    Example:
        >>> parse_target_table("US_TOTAL=0.6, INTL_STOCKS=0.3, US_BONDS=0.1")
        {<AssetClass.US_TOTAL: ...>: Decimal('0.6'), ...}
    """
    targets: dict[AssetClass, Decimal] = {}
    for entry in text.split(","):
        if not entry.strip():
            continue
        name, sep, ratio = entry.partition("=")
        if not sep:
            raise AllocationError(f"Expected CLASS=ratio, got {entry.strip()!r}")
        asset_class = AssetClass.parse(name)
        if asset_class in targets:
            raise AllocationError(f"Duplicate target for {asset_class}")
        try:
            targets[asset_class] = Decimal(ratio.strip())
        except InvalidOperation as e:
            raise AllocationError(f"Invalid ratio for {asset_class}: {ratio.strip()!r}") from e
    return targets


def target_ratios(
    config: RebalancerSettings, today: date | None = None
) -> Mapping[AssetClass, Decimal]:
    """Return the configured target table, or the age-based core four."""
    if config.targets:
        logger.debug("using_explicit_targets", asset_classes=len(config.targets))
        return config.targets

    ratio_bonds = bond_allocation(config.birthday, config.stocks_from_years, today)
    logger.debug("using_age_based_targets", ratio_bonds=str(ratio_bonds))
    return core_four(ratio_bonds)
