"""Lump-sum rebalancing: distribute one deposit or withdrawal across asset classes.

The optimal allocation is a closed-form "water-filling" walk. Allocations are
ranked by their deviation from target against the post-transaction total; the
worst-off class is raised until it matches the next worst, then both are raised
together, and so on until the contribution is exhausted. Deviation is linear in
the money added to a class, so every step is solved exactly with no search.

All intermediate values are exact rationals built from the Decimal inputs.
Results are handed back as Decimal contributions on each Allocation, settled to
1e-12 so that they always sum to exactly the requested contribution.
"""

from __future__ import annotations

from decimal import Decimal
from fractions import Fraction

import structlog

from rebalancer.domain.allocation import Allocation
from rebalancer.domain.portfolio import Portfolio
from rebalancer.exceptions import (
    ContributionError,
    ImbalancedTargetsError,
    NegativeBalanceError,
    OverWithdrawalError,
    ZeroContributionError,
)

logger = structlog.get_logger(__name__)

SETTLEMENT_QUANTUM = Decimal("1e-12")


def _to_decimal(value: Fraction) -> Decimal:
    return Decimal(value.numerator) / Decimal(value.denominator)


def validate_contribution(portfolio: Portfolio, contribution: Decimal) -> None:
    """Fail fast on any input the engine cannot distribute.

    Raises:
        ZeroContributionError: contribution is 0
        ImbalancedTargetsError: target ratios do not sum to exactly 1
        NegativeBalanceError: the portfolio's current value is negative
        OverWithdrawalError: a withdrawal of at least the portfolio's value
        ContributionError: the portfolio already carries contributions
    """
    if contribution == 0:
        raise ZeroContributionError("Must deposit or withdraw in order to rebalance")

    total_ratio = portfolio.sum_target_ratios()
    if total_ratio != Decimal("1"):
        raise ImbalancedTargetsError(
            f"Cannot rebalance unless target ratios total 100% (got {total_ratio})"
        )

    current_value = portfolio.current_value()
    if current_value < 0:
        raise NegativeBalanceError(f"Portfolio value is negative: {current_value}")

    if contribution < 0 and abs(contribution) >= current_value:
        raise OverWithdrawalError(
            f"Cannot withdraw {abs(contribution)} from a portfolio worth {current_value}"
        )

    if portfolio.future_value() != current_value:
        raise ContributionError("Portfolio already has pending contributions")


def _allocate_proportionally(portfolio: Portfolio, contribution: Decimal) -> Portfolio:
    for allocation in portfolio:
        allocation.add_contribution(allocation.target_ratio * contribution)
    return portfolio


def proportionally_allocate(portfolio: Portfolio, contribution: Decimal) -> Portfolio:
    """Split the contribution by target ratio, ignoring current holdings."""
    validate_contribution(portfolio, contribution)
    return _allocate_proportionally(portfolio, contribution)


def _water_fill(
    ranked: list[tuple[Fraction, Allocation]],
    new_total: Fraction,
    contribution: Fraction,
) -> tuple[Fraction, int]:
    """Walk ranked allocations, pooling them until the contribution runs out.

    Returns the deviation every affected allocation ends at, and how many of
    the leading allocations are affected.
    """
    amount_left = contribution
    summed_target_value = Fraction(0)
    deviation_target = Fraction(0)
    affected = 0

    for index, (deviation, allocation) in enumerate(ranked):
        affected = index + 1
        deviation_target = deviation
        summed_target_value += new_total * Fraction(allocation.target_ratio)

        if index + 1 < len(ranked):
            next_deviation = ranked[index + 1][0]
        else:
            next_deviation = Fraction(0)

        # Money needed to bring every pooled allocation to the next deviation
        delta = summed_target_value * (next_deviation - deviation_target)

        if abs(delta) > abs(amount_left):
            deviation_target += amount_left / summed_target_value
            amount_left = Fraction(0)
        else:
            amount_left -= delta
            deviation_target = next_deviation

        if amount_left == 0:
            break

    return deviation_target, affected


def optimally_allocate(portfolio: Portfolio, contribution: Decimal) -> Portfolio:
    """Distribute a deposit (positive) or withdrawal (negative) so the
    portfolio ends as close to its targets as possible.

    Deposits go to the most underweight classes first; withdrawals come from
    the most overweight classes first. Each affected allocation's
    future_contribution is set; the rest are left untouched.

    Args:
        portfolio: Fresh portfolio snapshot (no pending contributions)
        contribution: Signed amount to distribute

    Returns:
        The same portfolio, annotated with future contributions
    """
    validate_contribution(portfolio, contribution)

    current_value = portfolio.current_value()
    if current_value == 0:
        logger.info(
            "proportional_allocation_fallback",
            contribution=str(contribution),
            asset_classes=len(portfolio),
        )
        return _allocate_proportionally(portfolio, contribution)

    new_total = Fraction(current_value) + Fraction(contribution)

    # Contributing: underallocated classes first. Withdrawing: overallocated first.
    ranked = sorted(
        ((allocation.exact_deviation(new_total), allocation) for allocation in portfolio),
        key=lambda pair: pair[0],
    )
    if contribution < 0:
        ranked.reverse()

    deviation_target, affected = _water_fill(ranked, new_total, Fraction(contribution))

    deltas: list[tuple[Allocation, Decimal]] = []
    for deviation, allocation in ranked[:affected]:
        target_value = new_total * Fraction(allocation.target_ratio)
        deltas.append((allocation, _to_decimal(target_value * (deviation_target - deviation))))

    # All but one class are settled to SETTLEMENT_QUANTUM so the sums below are
    # exact. The largest contribution takes what is left, which keeps every sign.
    absorber = max(range(len(deltas)), key=lambda i: abs(deltas[i][1]))
    settled = [
        (allocation, delta if i == absorber else delta.quantize(SETTLEMENT_QUANTUM))
        for i, (allocation, delta) in enumerate(deltas)
    ]
    absorbing_allocation, raw_delta = deltas[absorber]
    others = sum((delta for i, (_, delta) in enumerate(settled) if i != absorber), Decimal("0"))
    remainder = contribution - others
    if remainder != raw_delta:
        logger.debug(
            "rounding_remainder_absorbed",
            asset_class=absorbing_allocation.asset_class.name,
            adjustment=str(remainder - raw_delta),
        )
    settled[absorber] = (absorbing_allocation, remainder)

    for allocation, delta in settled:
        allocation.add_contribution(delta)

    logger.info(
        "optimal_allocation_complete",
        contribution=str(contribution),
        affected_classes=affected,
        asset_classes=len(portfolio),
        final_deviation=str(_to_decimal(deviation_target)),
    )
    return portfolio
