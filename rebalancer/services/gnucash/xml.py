"""
Stream investment accounts, prices and splits out of a GnuCash XML book.

GnuCash writes XML books gzip-compressed by default; both compressed and
plain files are accepted. Elements are cleared as soon as they are handled so
large books parse in bounded memory. This is still markedly slower than the
SQLite backend on big books.
"""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import BinaryIO

import structlog
from lxml import etree

from rebalancer.exceptions import BookError
from rebalancer.services.gnucash.models import (
    Account,
    BookData,
    Commodity,
    LazySplit,
    Price,
)
from rebalancer.utils.dates import parse_gnucash_timestamp
from rebalancer.utils.decimals import frac_to_quantity

logger = structlog.get_logger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def _tag(prefix: str, name: str) -> str:
    """Qualified tag name, e.g. _tag("act", "name") -> '{http://www.gnucash.org/XML/act}name'."""
    return f"{{http://www.gnucash.org/XML/{prefix}}}{name}"


ACCOUNT = _tag("gnc", "account")
TRANSACTION = _tag("gnc", "transaction")
# Prices inside <gnc:pricedb> are unqualified <price> elements
PRICE = "price"


def _open(path: Path) -> BinaryIO:
    with path.open("rb") as probe:
        magic = probe.read(2)
    if magic == GZIP_MAGIC:
        return gzip.open(path, "rb")
    return path.open("rb")


def _text(element: etree._Element, path: str) -> str | None:
    found = element.find(path)
    if found is None or found.text is None:
        return None
    return found.text.strip()


def _commodity(element: etree._Element | None) -> Commodity | None:
    if element is None:
        return None
    symbol = _text(element, _tag("cmdty", "id"))
    if symbol is None:
        raise BookError("Commodities must have an ID")
    return Commodity(
        symbol=symbol,
        namespace=_text(element, _tag("cmdty", "space")),
        name=_text(element, _tag("cmdty", "name")) or "",
    )


def _account(element: etree._Element) -> Account:
    return Account(
        guid=_text(element, _tag("act", "id")) or "",
        name=_text(element, _tag("act", "name")) or "",
        commodity=_commodity(element.find(_tag("act", "commodity"))),
    )


def _price(element: etree._Element) -> Price:
    commodity = _commodity(element.find(_tag("price", "commodity")))
    currency = _commodity(element.find(_tag("price", "currency")))
    if commodity is None or currency is None:
        raise BookError("Prices must have a to/from commodity and a timestamp")

    posted = _text(element, f"{_tag('price', 'time')}/{_tag('ts', 'date')}")
    if posted is None:
        raise BookError(f"No timestamp found on price for {commodity.symbol}")

    value = _text(element, _tag("price", "value"))
    if value is None:
        raise BookError(f"No value found on price for {commodity.symbol}")

    return Price(
        commodity=commodity,
        currency=currency,
        value=frac_to_quantity(value),
        time=parse_gnucash_timestamp(posted),
    )


def _splits(element: etree._Element) -> list[LazySplit]:
    splits_element = element.find(_tag("trn", "splits"))
    if splits_element is None:
        raise BookError("Found a transaction with no splits")

    splits = []
    for split in splits_element.iterfind(_tag("trn", "split")):
        value = _text(split, _tag("split", "value"))
        quantity = _text(split, _tag("split", "quantity"))
        account_guid = _text(split, _tag("split", "account"))
        if value is None or quantity is None or account_guid is None:
            raise BookError("Must have value, quantity, and account in a split")
        splits.append(LazySplit(account_guid, value, quantity))
    return splits


def read_xml_book(path: Path | str) -> BookData:
    """
    Read FUND accounts, USD prices and the splits of investment accounts.

    Splits are kept as LazySplits: fractions are only parsed for accounts
    that are actually valued.
    """
    path = Path(path)
    if not path.is_file():
        raise BookError(f"GnuCash book not found: {path}")

    data = BookData()
    accounts_by_guid: dict[str, Account] = {}
    split_count = 0

    with _open(path) as source:
        try:
            events = etree.iterparse(source, events=("end",), tag=(ACCOUNT, TRANSACTION, PRICE))
            for _, element in events:
                if element.tag == ACCOUNT:
                    account = _account(element)
                    if account.is_investment:
                        accounts_by_guid[account.guid] = account
                elif element.tag == PRICE:
                    price = _price(element)
                    if price.is_in_usd:
                        data.prices.append(price)
                else:
                    # Accounts precede transactions, so every investment account is known here
                    for split in _splits(element):
                        account = accounts_by_guid.get(split.account_guid)
                        if account is not None:
                            account.add_split(split)
                            split_count += 1

                element.clear(keep_tail=True)
        except etree.XMLSyntaxError as e:
            raise BookError(f"Could not parse {path}: {e}") from e

    data.accounts = list(accounts_by_guid.values())
    logger.info(
        "xml_book_read",
        path=str(path),
        accounts=len(data.accounts),
        prices=len(data.prices),
        splits=split_count,
    )
    return data
