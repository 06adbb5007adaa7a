from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from rebalancer.domain.allocation import Allocation
from rebalancer.domain.portfolio import Portfolio
from rebalancer.utils.decimals import format_dollars, format_percent


@dataclass(frozen=True)
class AllocationRow:
    asset_class: str

    # Value
    value: str
    value_raw: Decimal

    # Share of the portfolio before and after contributions
    start: str
    start_raw: Decimal
    final: str
    final_raw: Decimal
    target: str
    target_raw: Decimal

    # Distance from target once contributions settle (None for an empty portfolio)
    deviation: str
    deviation_raw: Decimal | None

    contribution: str
    contribution_raw: Decimal


@dataclass(frozen=True)
class HoldingRow:
    asset_class: str
    name: str
    symbol: str
    quantity: str
    price: str
    value: str
    value_raw: Decimal


def _share(amount: Decimal, total: Decimal) -> Decimal:
    return amount / total if total else Decimal("0")


class PortfolioPresenter:
    """Plain-text tables describing a Portfolio, before and after rebalancing.

    Values are rounded here and nowhere else.
    """

    def __init__(self, portfolio: Portfolio) -> None:
        self.portfolio = portfolio

    def _allocation_row(
        self, allocation: Allocation, start_total: Decimal, final_total: Decimal
    ) -> AllocationRow:
        start = _share(allocation.current_value(), start_total)
        final = _share(allocation.future_value(), final_total)
        deviation_raw = allocation.deviation(final_total) if final_total else None

        return AllocationRow(
            asset_class=allocation.asset_class.label,
            value=format_dollars(allocation.current_value()),
            value_raw=allocation.current_value(),
            start=format_percent(start),
            start_raw=start,
            final=format_percent(final),
            final_raw=final,
            target=format_percent(allocation.target_ratio),
            target_raw=allocation.target_ratio,
            deviation="-" if deviation_raw is None else format_percent(deviation_raw),
            deviation_raw=deviation_raw,
            contribution=format_dollars(allocation.future_contribution),
            contribution_raw=allocation.future_contribution,
        )

    def allocation_rows(self) -> list[AllocationRow]:
        """One row per asset class, in the portfolio's (descending value) order."""
        start_total = self.portfolio.current_value()
        final_total = self.portfolio.future_value()
        return [
            self._allocation_row(allocation, start_total, final_total)
            for allocation in self.portfolio
        ]

    def holding_rows(self) -> list[HoldingRow]:
        rows = []
        for allocation in self.portfolio:
            for asset in allocation.underlying_assets:
                price = "" if asset.last_price is None else format_dollars(asset.last_price)
                rows.append(
                    HoldingRow(
                        asset_class=allocation.asset_class.label,
                        name=asset.name,
                        symbol=asset.symbol or "",
                        quantity="" if asset.quantity is None else f"{asset.quantity:,.3f}",
                        price=price,
                        value=format_dollars(asset.value),
                        value_raw=asset.value,
                    )
                )
        return rows

    def render_holdings(self) -> str:
        return "\n".join(
            f"  {row.name:<32} {row.symbol:<6} {row.quantity:>12} {row.price:>10} "
            f"{row.value:>14}"
            for row in self.holding_rows()
        )

    def render_status(self) -> str:
        lines = [f"{'Asset class':<24} {'Value':>14} {'Current':>9} {'Target':>9}"]
        for row in self.allocation_rows():
            lines.append(f"{row.asset_class:<24} {row.value:>14} {row.start:>9} {row.target:>9}")
        lines.append(f"{'Total':<24} {format_dollars(self.portfolio.current_value()):>14}")
        return "\n".join(lines)

    def render_contributions(self) -> str:
        """Money in (or out) per asset class, and where each class lands."""
        lines = [
            f"{'Asset class':<24} {'Amount':>14} {'Start':>9} {'Final':>9} {'Target':>9}",
        ]
        for row in self.allocation_rows():
            lines.append(
                f"{row.asset_class:<24} {row.contribution:>14} "
                f"{row.start:>9} {row.final:>9} {row.target:>9}"
            )
        return "\n".join(lines)
