"""
GnuCash book aggregate.

Turns accounts and prices read from a book into Holdings, and Holdings into
a Portfolio ready for rebalancing.

Usage:
    from rebalancer.services.gnucash import Book

    book = Book.from_settings(get_settings())
    portfolio = book.portfolio_status(classifications, targets)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING

from django.utils import timezone

import structlog

from rebalancer.domain.assets import Asset, AssetClass
from rebalancer.domain.portfolio import Portfolio
from rebalancer.exceptions import PricingError, UnsupportedBookFormatError
from rebalancer.services.gnucash.models import (
    Account,
    BookData,
    Commodity,
    Price,
    PriceDatabase,
)
from rebalancer.services.gnucash.sqlite import read_sqlite_book
from rebalancer.services.gnucash.xml import read_xml_book

if TYPE_CHECKING:
    from rebalancer.conf import RebalancerSettings
    from rebalancer.services.classification import AssetClassifications
    from rebalancer.services.market_data import MarketDataService

logger = structlog.get_logger(__name__)

# A quote older than this is refreshed (weekends and holidays simply retry)
STALE_PRICE_AGE = timedelta(days=1)


class Book:
    """Investment accounts and their latest prices."""

    def __init__(self) -> None:
        self.pricedb = PriceDatabase()
        self.account_by_guid: dict[str, Account] = {}

    @classmethod
    def from_data(cls, data: BookData) -> Book:
        book = cls()
        for account in data.accounts:
            book.add_investment(account)
        for price in data.prices:
            if price.is_in_usd:
                book.pricedb.add_price(price)
        return book

    @classmethod
    def from_sqlite_file(cls, path: Path | str) -> Book:
        return cls.from_data(read_sqlite_book(path))

    @classmethod
    def from_xml_file(cls, path: Path | str) -> Book:
        return cls.from_data(read_xml_book(path))

    @classmethod
    def from_settings(cls, config: RebalancerSettings) -> Book:
        """Read the configured book in its configured format."""
        if config.book_format == "sqlite3":
            return cls.from_sqlite_file(config.book_path)
        if config.book_format == "xml":
            logger.info("reading_xml_book", hint="SQLite books load much faster")
            return cls.from_xml_file(config.book_path)
        raise UnsupportedBookFormatError(
            f"Unsupported book format {config.book_format!r} (expected sqlite3 or xml)"
        )

    def add_investment(self, account: Account) -> None:
        if not account.is_investment:
            logger.debug("non_investment_account_ignored", account=account.name)
            return
        self.account_by_guid[account.guid] = account

    def commodities(self) -> list[Commodity]:
        """Distinct commodities held across investment accounts."""
        seen: dict[str, Commodity] = {}
        for account in self.account_by_guid.values():
            if account.commodity is not None:
                seen.setdefault(account.commodity.symbol, account.commodity)
        return list(seen.values())

    def last_price_for(self, account: Account) -> Price:
        if account.commodity is None:
            raise PricingError(f"Account {account.name!r} has no commodity to price")
        price = self.pricedb.last_price(account.commodity)
        if price is None:
            raise PricingError(f"No last price found for {account.commodity.symbol}")
        return price

    def holdings(self, classifications: AssetClassifications) -> list[Asset]:
        """
        Return one Asset per investment account worth more than $0.

        Raises:
            PricingError: if an account's commodity has never been priced
            UnknownSymbolError: if a commodity has no asset class
        """
        non_zero_holdings = []
        for account in self.account_by_guid.values():
            last_price = self.last_price_for(account)
            value = account.current_value(last_price)
            if value == 0:
                logger.debug("empty_account_skipped", account=account.name)
                continue

            non_zero_holdings.append(
                Asset(
                    name=account.name,
                    value=value,
                    asset_class=classifications.classify(account.commodity.symbol),
                    symbol=account.commodity.symbol,
                    quantity=account.current_quantity(),
                    last_price=last_price.value,
                    priced_at=last_price.time,
                )
            )
        return non_zero_holdings

    def portfolio_status(
        self,
        classifications: AssetClassifications,
        targets: Mapping[AssetClass, Decimal],
    ) -> Portfolio:
        """Classify current holdings into a Portfolio for the given targets."""
        return Portfolio.from_holdings(self.holdings(classifications), targets)

    def commodities_needing_quotes(self, now: datetime | None = None) -> list[Commodity]:
        """Commodities with no price, or a price more than a day old."""
        now = now or timezone.now()
        stale = []
        for commodity in self.commodities():
            price = self.pricedb.last_price(commodity)
            if price is None or abs(now - price.time) > STALE_PRICE_AGE:
                stale.append(commodity)
        return stale

    def refresh_prices(
        self, market_data: MarketDataService, now: datetime | None = None
    ) -> list[Price]:
        """
        Fetch quotes for stale commodities and keep the newer ones in memory.

        Nothing is written back to the book.

        Returns:
            Prices that replaced the previously known price
        """
        stale = self.commodities_needing_quotes(now)
        if not stale:
            logger.info("prices_current")
            return []

        by_symbol = {commodity.symbol: commodity for commodity in stale}
        quotes = market_data.get_quotes(list(by_symbol))
        usd = Commodity("USD", "CURRENCY", "US Dollar")

        updated = []
        for symbol, quote in quotes.items():
            previous = self.pricedb.last_price(by_symbol[symbol])
            if previous is not None and (previous.time, previous.value) == (quote.time, quote.last):
                continue
            price = Price(
                commodity=by_symbol[symbol], currency=usd, value=quote.last, time=quote.time
            )
            if self.pricedb.add_price(price):
                updated.append(price)

        logger.info(
            "prices_refreshed",
            requested=len(stale),
            received=len(quotes),
            updated=len(updated),
        )
        return updated
