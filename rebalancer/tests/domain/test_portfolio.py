"""
Tests for the Portfolio aggregate.

Tests: rebalancer/domain/portfolio.py
"""

from decimal import Decimal

import pytest

from rebalancer.domain import Allocation, Asset, AssetClass, Portfolio
from rebalancer.exceptions import DuplicateAssetClassError
from rebalancer.tests.conftest import SCENARIO_TARGETS, make_allocation


@pytest.mark.domain
@pytest.mark.unit
class TestPortfolio:
    def test_sorted_by_current_value_descending(self) -> None:
        portfolio = Portfolio(
            [
                make_allocation(AssetClass.US_BONDS, "0.2", "10"),
                make_allocation(AssetClass.REIT, "0.3", "300"),
                make_allocation(AssetClass.CASH, "0.5", "50", "25"),
            ]
        )
        assert [a.asset_class for a in portfolio] == [
            AssetClass.REIT,
            AssetClass.CASH,
            AssetClass.US_BONDS,
        ]
        assert len(portfolio) == 3

    def test_duplicate_asset_class_rejected(self) -> None:
        with pytest.raises(DuplicateAssetClassError):
            Portfolio(
                [
                    make_allocation(AssetClass.REIT, "0.5", "1"),
                    make_allocation(AssetClass.REIT, "0.5", "2"),
                ]
            )

    def test_totals(self, scenario_portfolio: Portfolio) -> None:
        assert scenario_portfolio.current_value() == Decimal("1000")
        assert scenario_portfolio.future_value() == Decimal("1000")
        assert scenario_portfolio.sum_target_ratios() == Decimal("1")

    def test_target_sum_not_validated_on_construction(self) -> None:
        portfolio = Portfolio(
            [
                make_allocation(AssetClass.US_TOTAL, "0.3", "1"),
                make_allocation(AssetClass.US_BONDS, "0.3", "1"),
            ]
        )
        assert portfolio.sum_target_ratios() == Decimal("0.6")

    def test_allocation_for(self, scenario_portfolio: Portfolio) -> None:
        allocation = scenario_portfolio.allocation_for(AssetClass.INTL_STOCKS)
        assert allocation is not None
        assert allocation.current_value() == Decimal("200")
        assert scenario_portfolio.allocation_for(AssetClass.REIT) is None


@pytest.mark.domain
@pytest.mark.unit
class TestMinimumAdditionToBalance:
    def test_scenario(self, scenario_portfolio: Portfolio) -> None:
        # Bonds are the most overweight: $140 is 10% of $1,400
        assert scenario_portfolio.minimum_addition_to_balance() == Decimal("400")

    def test_balanced_portfolio_needs_nothing(self) -> None:
        portfolio = Portfolio(
            [
                make_allocation(AssetClass.US_TOTAL, "0.5", "100"),
                make_allocation(AssetClass.US_BONDS, "0.5", "100"),
            ]
        )
        assert portfolio.minimum_addition_to_balance() == Decimal("0")

    def test_empty_portfolio(self) -> None:
        portfolio = Portfolio([Allocation(AssetClass.US_TOTAL, Decimal("1"))])
        assert portfolio.minimum_addition_to_balance() == Decimal("0")
        assert Portfolio([]).minimum_addition_to_balance() == Decimal("0")


@pytest.mark.domain
@pytest.mark.unit
class TestFromHoldings:
    def test_groups_holdings_by_class(self) -> None:
        holdings = [
            Asset(name="VTSAX", value=Decimal("600"), asset_class=AssetClass.US_TOTAL),
            Asset(name="FZROX", value=Decimal("60"), asset_class=AssetClass.US_TOTAL),
            Asset(name="VTIAX", value=Decimal("200"), asset_class=AssetClass.INTL_STOCKS),
        ]
        portfolio = Portfolio.from_holdings(holdings, SCENARIO_TARGETS)

        assert len(portfolio) == 3
        us_total = portfolio.allocation_for(AssetClass.US_TOTAL)
        assert us_total is not None
        assert us_total.current_value() == Decimal("660")
        assert us_total.target_ratio == Decimal("0.6")

        # Targeted classes without holdings are still tracked
        us_bonds = portfolio.allocation_for(AssetClass.US_BONDS)
        assert us_bonds is not None
        assert us_bonds.current_value() == Decimal("0")

    def test_untracked_classes_are_left_out(self) -> None:
        holdings = [
            Asset(name="VTSAX", value=Decimal("600"), asset_class=AssetClass.US_TOTAL),
            Asset(name="VMFXX", value=Decimal("75"), asset_class=AssetClass.CASH),
        ]
        portfolio = Portfolio.from_holdings(holdings, SCENARIO_TARGETS)

        assert portfolio.allocation_for(AssetClass.CASH) is None
        assert portfolio.current_value() == Decimal("600")
