"""Read investment accounts and fund prices from a GnuCash SQLite book."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from decimal import Decimal
from pathlib import Path

import structlog

from rebalancer.exceptions import BookError
from rebalancer.services.gnucash.models import (
    Account,
    BookData,
    Commodity,
    ComputedSplit,
    Price,
)
from rebalancer.utils.dates import parse_gnucash_timestamp

logger = structlog.get_logger(__name__)

INVESTMENT_ACCOUNTS_SQL = """
    SELECT a.guid, a.name,
           -- Commodity for the account
           c.mnemonic, c.namespace, c.fullname
      FROM accounts a
           JOIN commodities c ON a.commodity_guid = c.guid
     WHERE c.namespace = 'FUND'
"""

SPLITS_SQL = """
    SELECT s.account_guid,
           s.value_num, s.value_denom,
           s.quantity_num, s.quantity_denom
      FROM splits s
           JOIN accounts a ON s.account_guid = a.guid
           JOIN commodities c ON a.commodity_guid = c.guid
     WHERE c.namespace = 'FUND'
"""

FUND_PRICES_SQL = """
    SELECT p.value_num, p.value_denom, p.date,
           -- Commodity for which the price is being quoted
           from_c.mnemonic, from_c.namespace, from_c.fullname,
           -- Commodity in which the price is defined (generally a currency)
           to_c.mnemonic, to_c.namespace, to_c.fullname
      FROM prices p
           JOIN commodities from_c ON p.commodity_guid = from_c.guid
           JOIN commodities to_c ON p.currency_guid = to_c.guid
     WHERE from_c.namespace = 'FUND'
"""


def _ratio(numerator: int, denominator: int) -> Decimal:
    if denominator == 0:
        raise BookError(f"Zero denominator in stored fraction {numerator}/{denominator}")
    return Decimal(numerator) / Decimal(denominator)


def connect(path: Path | str) -> sqlite3.Connection:
    """Open a GnuCash SQLite book read-only."""
    path = Path(path)
    if not path.is_file():
        raise BookError(f"GnuCash book not found: {path}")
    try:
        return sqlite3.connect(f"file:{path}?mode=ro", uri=True)
    except sqlite3.Error as e:
        raise BookError(f"Could not open {path}: {e}") from e


def read_sqlite_book(path: Path | str) -> BookData:
    """
    Read every FUND account, its splits, and all FUND prices.

    Returns:
        BookData with splits attached to their accounts
    """
    data = BookData()

    with closing(connect(path)) as conn:
        try:
            accounts_by_guid = {
                guid: Account(
                    guid=guid,
                    name=name,
                    commodity=Commodity(mnemonic, namespace, fullname or ""),
                )
                for guid, name, mnemonic, namespace, fullname in conn.execute(
                    INVESTMENT_ACCOUNTS_SQL
                )
            }

            for account_guid, v_num, v_denom, q_num, q_denom in conn.execute(SPLITS_SQL):
                accounts_by_guid[account_guid].add_split(
                    ComputedSplit(
                        account_guid=account_guid,
                        value=_ratio(v_num, v_denom),
                        quantity=_ratio(q_num, q_denom),
                    )
                )

            for row in conn.execute(FUND_PRICES_SQL):
                v_num, v_denom, posted, *commodities = row
                data.prices.append(
                    Price(
                        commodity=Commodity(commodities[0], commodities[1], commodities[2] or ""),
                        currency=Commodity(commodities[3], commodities[4], commodities[5] or ""),
                        value=_ratio(v_num, v_denom),
                        time=parse_gnucash_timestamp(posted),
                    )
                )
        except sqlite3.Error as e:
            raise BookError(f"Could not read GnuCash tables from {path}: {e}") from e

    data.accounts = list(accounts_by_guid.values())
    logger.info(
        "sqlite_book_read",
        path=str(path),
        accounts=len(data.accounts),
        prices=len(data.prices),
    )
    return data
