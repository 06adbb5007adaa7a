"""Rebalancing engine for lump-sum deposits and withdrawals.

Usage:
    from rebalancer.services.rebalancing import optimally_allocate

    portfolio = Portfolio.from_holdings(holdings, targets)
    print(portfolio.minimum_addition_to_balance())
    optimally_allocate(portfolio, Decimal("400"))

    for allocation in portfolio:
        print(allocation.asset_class, allocation.future_contribution)
"""

from rebalancer.services.rebalancing.engine import (
    optimally_allocate,
    proportionally_allocate,
    validate_contribution,
)

__all__ = ["optimally_allocate", "proportionally_allocate", "validate_contribution"]
