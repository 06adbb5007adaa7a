import argparse
import dataclasses
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

import structlog

from rebalancer.conf import RebalancerSettings, get_settings
from rebalancer.domain.portfolio import Portfolio
from rebalancer.exceptions import ExpenseAccountNotFoundError, RebalancerError
from rebalancer.presenters import PortfolioPresenter
from rebalancer.services.classification import AssetClassifications
from rebalancer.services.compounding import retirement_projection
from rebalancer.services.gnucash import Book
from rebalancer.services.market_data import MarketDataService
from rebalancer.services.rebalancing import optimally_allocate
from rebalancer.services.stats import LedgerStats
from rebalancer.services.targets import target_ratios
from rebalancer.utils.decimals import format_dollars, format_percent

logger = structlog.get_logger(__name__)


def parse_contribution(text: str) -> Decimal:
    """Parse '1,500', '$1500.00' or '-250' into a Decimal."""
    cleaned = text.strip().replace(",", "").replace("$", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise CommandError(f"Not a dollar amount: {text!r}") from None
    if not amount.is_finite():
        raise CommandError(f"Not a dollar amount: {text!r}")
    return amount


class Command(BaseCommand):
    help = "Show portfolio status from a GnuCash book and rebalance a deposit or withdrawal."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--contribution",
            help="Amount to deposit (positive) or withdraw (negative); prompted if omitted",
        )
        parser.add_argument("--book", help="Path to the GnuCash book (overrides GNUCASH_BOOK)")
        parser.add_argument(
            "--format",
            dest="book_format",
            choices=["sqlite3", "xml"],
            help="Book backend (overrides GNUCASH_FORMAT)",
        )
        parser.add_argument(
            "--classifications",
            help="CSV mapping ticker symbols to asset classes",
        )
        parser.add_argument(
            "--update-prices",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Fetch fresh quotes for commodities priced more than a day ago",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        try:
            config = self._settings(options)
            portfolio = self._load_portfolio(config)

            self._write_status(portfolio)
            self._write_projection(config, portfolio)
            if config.book_format == "sqlite3":
                self._write_stats(config)

            minimum = portfolio.minimum_addition_to_balance()
            self.stdout.write(f"\nMinimum to balance: {format_dollars(minimum)}")

            contribution = options["contribution"]
            if contribution is None:
                contribution = input("How much to contribute or withdraw? ")
            amount = parse_contribution(contribution)

            optimally_allocate(portfolio, amount)
        except (RebalancerError, ImproperlyConfigured) as e:
            logger.warning("rebalance_failed", error=str(e), error_type=type(e).__name__)
            raise CommandError(str(e)) from e

        self.stdout.write("")
        self.stdout.write(PortfolioPresenter(portfolio).render_contributions())
        self.stdout.write(
            self.style.SUCCESS(
                f"\nNew total: {format_dollars(portfolio.future_value())} "
                f"after {format_dollars(amount)}"
            )
        )

    def _settings(self, options: dict[str, Any]) -> RebalancerSettings:
        config = get_settings()
        overrides: dict[str, Any] = {}
        if options.get("book"):
            overrides["book_path"] = Path(options["book"])
        if options.get("book_format"):
            overrides["book_format"] = options["book_format"]
        if options.get("classifications"):
            overrides["classifications_path"] = Path(options["classifications"])
        if options.get("update_prices") is not None:
            overrides["update_prices"] = options["update_prices"]
        return dataclasses.replace(config, **overrides)

    def _load_portfolio(self, config: RebalancerSettings) -> Portfolio:
        if config.classifications_path is not None:
            classifications = AssetClassifications.from_csv(config.classifications_path)
        else:
            classifications = AssetClassifications()

        book = Book.from_settings(config)
        if config.update_prices:
            book.refresh_prices(MarketDataService())

        return book.portfolio_status(classifications, target_ratios(config))

    def _write_status(self, portfolio: Portfolio) -> None:
        presenter = PortfolioPresenter(portfolio)
        self.stdout.write(self.style.SUCCESS("Current portfolio"))
        self.stdout.write(presenter.render_holdings())
        self.stdout.write("")
        self.stdout.write(presenter.render_status())

    def _write_projection(self, config: RebalancerSettings, portfolio: Portfolio) -> None:
        growth = format_percent(config.real_apy)
        self.stdout.write(f"\nRetirement projection ({growth} real growth)")
        rows = retirement_projection(config.birthday, portfolio.current_value(), config.real_apy)
        for row in rows:
            self.stdout.write(
                f"  {row.retire_on.isoformat()} (age {row.age}): "
                f"{format_dollars(row.total)} -> {format_dollars(row.safe_withdrawal)}/year"
            )

    def _write_stats(self, config: RebalancerSettings) -> None:
        stats = LedgerStats(config.book_path)
        self.stdout.write("\nLifetime stats")
        self.stdout.write(f"  Income before taxes: {format_dollars(stats.income_before_taxes())}")
        try:
            after_tax = stats.after_tax_income()
            self.stdout.write(f"  After-tax income: {format_dollars(after_tax)}")
            charity = stats.charitable_giving()
        except ExpenseAccountNotFoundError as e:
            logger.info("ledger_stats_incomplete", reason=str(e))
            self.stdout.write(self.style.WARNING(f"  {e}"))
            return

        giving = f"  Charitable giving: {format_dollars(charity)}"
        if after_tax > 0:
            share = format_percent(charity / after_tax, decimals=0)
            giving += f" ({share} of after-tax income)"
        self.stdout.write(giving)
