from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.utils import timezone

import pandas as pd
import pytz
import structlog
import yfinance as yf

logger = structlog.get_logger(__name__)

# Money market / settlement funds hold a constant $1.00 NAV
CASH_SYMBOLS = frozenset({"CASH", "FZFXX", "VMFXX", "SPAXX"})

MARKET_TZ = "America/New_York"


@dataclass(frozen=True)
class Quote:
    """A last-trade quote for one symbol."""

    symbol: str
    last: Decimal
    time: datetime
    currency: str = "USD"


class MarketDataService:
    @staticmethod
    def get_quotes(symbols: list[str]) -> dict[str, Quote]:
        """
        Fetch current quotes with their market timestamps.

        The timestamp reflects when the market reported the price, not when
        we fetched it. Symbols that cannot be priced are logged and omitted.

        Args:
            symbols: Ticker symbols to fetch

        Returns:
            Dictionary mapping symbol -> Quote

        Example:
            >>> quotes = MarketDataService.get_quotes(['VTSAX', 'VBTLX'])
            >>> quotes['VBTLX'].last
            Decimal('11.09')
        """
        if not symbols:
            return {}

        quotes: dict[str, Quote] = {}
        params_symbols = []

        for symbol in symbols:
            if symbol in CASH_SYMBOLS:
                quotes[symbol] = Quote(symbol, Decimal("1.00"), timezone.now())
            else:
                params_symbols.append(symbol)

        if not params_symbols:
            return quotes

        try:
            data = yf.download(params_symbols, period="1d", progress=False, auto_adjust=True)[
                "Close"
            ]

            if len(params_symbols) == 1:
                symbol = params_symbols[0]
                if not data.empty:
                    timestamp = MarketDataService._normalize_timestamp(
                        pd.Timestamp(data.index[-1]).to_pydatetime()
                    )
                    quote = MarketDataService._to_quote(symbol, data.iloc[-1], timestamp)
                    if quote is not None:
                        quotes[symbol] = quote
            elif not data.empty:
                latest_prices = data.iloc[-1]
                timestamp = MarketDataService._normalize_timestamp(
                    pd.Timestamp(data.index[-1]).to_pydatetime()
                )
                for symbol in params_symbols:
                    try:
                        quote = MarketDataService._to_quote(
                            symbol, latest_prices[symbol], timestamp
                        )
                    except KeyError:
                        logger.warning("quote_missing_from_response", symbol=symbol)
                        continue
                    if quote is not None:
                        quotes[symbol] = quote

        except Exception as e:
            logger.error("quote_fetch_failed", symbols=params_symbols, error=str(e))

        return quotes

    @staticmethod
    def _to_quote(symbol: str, price_value: object, timestamp: datetime) -> Quote | None:
        val = price_value.item() if hasattr(price_value, "item") else price_value
        if val != val:  # NaN check
            logger.warning("quote_is_nan", symbol=symbol)
            return None
        return Quote(symbol, Decimal(str(val)), timestamp)

    @staticmethod
    def _normalize_timestamp(timestamp: datetime) -> datetime:
        """
        Normalize a Yahoo Finance timestamp to market time.

        Daily data arrives dated at midnight; it represents the 4 PM ET close.
        Naive timestamps are assumed to be US Eastern.
        """
        if timestamp.tzinfo is None:
            timestamp = pytz.timezone(MARKET_TZ).localize(timestamp)

        if timestamp.hour == 0 and timestamp.minute == 0 and timestamp.second == 0:
            timestamp = timestamp.replace(hour=16, minute=0, second=0, microsecond=0)

        return timestamp
