"""
Root-level pytest fixtures for the rebalancer test suite.

Fixture Hierarchy:
- scenario_portfolio: 60/30/10 portfolio worth $1,000 (no book needed)
- sqlite_book: GnuCash SQLite book holding the same three funds, plus income,
  taxes and charity transactions for ledger statistics
- xml_book / gzip_xml_book: the same funds as a GnuCash XML book
"""

import gzip
import sqlite3
from contextlib import closing
from decimal import Decimal
from pathlib import Path

import pytest

from rebalancer.domain import Allocation, Asset, AssetClass, Portfolio

SCENARIO_TARGETS = {
    AssetClass.US_TOTAL: Decimal("0.6"),
    AssetClass.INTL_STOCKS: Decimal("0.3"),
    AssetClass.US_BONDS: Decimal("0.1"),
}


def make_allocation(asset_class: AssetClass, ratio: str, *values: str) -> Allocation:
    """Allocation holding one asset per value, named after the class."""
    return Allocation(
        asset_class=asset_class,
        target_ratio=Decimal(ratio),
        underlying_assets=[
            Asset(name=f"{asset_class.name} {i}", value=Decimal(value), asset_class=asset_class)
            for i, value in enumerate(values)
        ],
    )


@pytest.fixture
def scenario_portfolio() -> Portfolio:
    """
    Three classes worth $1,000 in total.

    - US total market: $660 (target 60%)
    - International stocks: $200 (target 30%)
    - US bonds: $140 (target 10%)
    """
    return Portfolio(
        [
            make_allocation(AssetClass.US_TOTAL, "0.6", "660"),
            make_allocation(AssetClass.INTL_STOCKS, "0.3", "200"),
            make_allocation(AssetClass.US_BONDS, "0.1", "140"),
        ]
    )


# ============================================================================
# SQLITE BOOK
# ============================================================================

GNUCASH_SCHEMA = """
CREATE TABLE commodities (
    guid TEXT PRIMARY KEY,
    namespace TEXT NOT NULL,
    mnemonic TEXT NOT NULL,
    fullname TEXT
);
CREATE TABLE accounts (
    guid TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    account_type TEXT NOT NULL,
    commodity_guid TEXT,
    parent_guid TEXT
);
CREATE TABLE splits (
    guid TEXT PRIMARY KEY,
    tx_guid TEXT NOT NULL,
    account_guid TEXT NOT NULL,
    value_num INTEGER NOT NULL,
    value_denom INTEGER NOT NULL,
    quantity_num INTEGER NOT NULL,
    quantity_denom INTEGER NOT NULL
);
CREATE TABLE prices (
    guid TEXT PRIMARY KEY,
    commodity_guid TEXT NOT NULL,
    currency_guid TEXT NOT NULL,
    date TEXT NOT NULL,
    value_num INTEGER NOT NULL,
    value_denom INTEGER NOT NULL
);
"""

COMMODITIES = [
    ("c-usd", "CURRENCY", "USD", "US Dollar"),
    ("c-vtsax", "FUND", "VTSAX", "Vanguard Total Stock Market Index Fund"),
    ("c-vtiax", "FUND", "VTIAX", "Vanguard Total International Stock Index Fund"),
    ("c-vbtlx", "FUND", "VBTLX", None),
]

ACCOUNTS = [
    ("a-root", "Root Account", "ROOT", None, None),
    ("a-assets", "Assets", "ASSET", "c-usd", "a-root"),
    ("a-checking", "Checking", "BANK", "c-usd", "a-assets"),
    ("a-vtsax", "Roth IRA VTSAX", "MUTUAL", "c-vtsax", "a-assets"),
    ("a-vtiax", "Roth IRA VTIAX", "MUTUAL", "c-vtiax", "a-assets"),
    ("a-vbtlx", "401k VBTLX", "MUTUAL", "c-vbtlx", "a-assets"),
    ("a-income", "Income", "INCOME", "c-usd", "a-root"),
    ("a-salary", "Salary", "INCOME", "c-usd", "a-income"),
    ("a-expenses", "Expenses", "EXPENSE", "c-usd", "a-root"),
    ("a-taxes", "Taxes", "EXPENSE", "c-usd", "a-expenses"),
    ("a-federal", "Federal", "EXPENSE", "c-usd", "a-taxes"),
    ("a-fica", "FICA", "EXPENSE", "c-usd", "a-taxes"),
    ("a-charity", "Charity", "EXPENSE", "c-usd", "a-expenses"),
]

SPLITS = [
    # Paycheck: $5,000 gross, $1,000 withheld across two tax accounts
    ("s1", "t-pay", "a-salary", -500000, 100, -500000, 100),
    ("s2", "t-pay", "a-federal", 70000, 100, 70000, 100),
    ("s3", "t-pay", "a-fica", 30000, 100, 30000, 100),
    ("s4", "t-pay", "a-checking", 400000, 100, 400000, 100),
    # Fund purchases: 6.6 VTSAX, 20 VTIAX, 14 VBTLX
    ("s5", "t-buy", "a-vtsax", 59400, 100, 66, 10),
    ("s6", "t-buy", "a-vtiax", 20000, 100, 2000, 100),
    ("s7", "t-buy", "a-vbtlx", 14000, 100, 14, 1),
    ("s8", "t-buy", "a-checking", -93400, 100, -93400, 100),
    ("s9", "t-give", "a-charity", 25000, 100, 25000, 100),
    ("s10", "t-give", "a-checking", -25000, 100, -25000, 100),
]

PRICES = [
    ("p1", "c-vtsax", "c-usd", "2023-12-01 21:00:00", 9000, 100),
    ("p2", "c-vtsax", "c-usd", "2024-01-02 21:00:00", 10000, 100),
    ("p3", "c-vtiax", "c-usd", "2024-01-02 21:00:00", 1000, 100),
    ("p4", "c-vbtlx", "c-usd", "20240102210000", 1000, 100),
]


def write_sqlite_book(
    path: Path,
    accounts: list[tuple] | None = None,
    prices: list[tuple] | None = None,
) -> Path:
    with closing(sqlite3.connect(path)) as conn:
        conn.executescript(GNUCASH_SCHEMA)
        conn.executemany("INSERT INTO commodities VALUES (?, ?, ?, ?)", COMMODITIES)
        conn.executemany("INSERT INTO accounts VALUES (?, ?, ?, ?, ?)", accounts or ACCOUNTS)
        conn.executemany("INSERT INTO splits VALUES (?, ?, ?, ?, ?, ?, ?)", SPLITS)
        conn.executemany(
            "INSERT INTO prices VALUES (?, ?, ?, ?, ?, ?)", PRICES if prices is None else prices
        )
        conn.commit()
    return path


@pytest.fixture
def sqlite_book(tmp_path: Path) -> Path:
    """GnuCash SQLite book worth $660/$200/$140 in VTSAX/VTIAX/VBTLX."""
    return write_sqlite_book(tmp_path / "book.gnucash")


# ============================================================================
# XML BOOK
# ============================================================================

XML_BOOK = """<?xml version="1.0" encoding="utf-8" ?>
<gnc-v2
     xmlns:gnc="http://www.gnucash.org/XML/gnc"
     xmlns:act="http://www.gnucash.org/XML/act"
     xmlns:book="http://www.gnucash.org/XML/book"
     xmlns:cmdty="http://www.gnucash.org/XML/cmdty"
     xmlns:price="http://www.gnucash.org/XML/price"
     xmlns:split="http://www.gnucash.org/XML/split"
     xmlns:trn="http://www.gnucash.org/XML/trn"
     xmlns:ts="http://www.gnucash.org/XML/ts">
<gnc:book version="2.0.0">
<gnc:pricedb version="1">
  <price>
    <price:commodity><cmdty:space>FUND</cmdty:space><cmdty:id>VTSAX</cmdty:id></price:commodity>
    <price:currency><cmdty:space>ISO4217</cmdty:space><cmdty:id>USD</cmdty:id></price:currency>
    <price:time><ts:date>2024-01-02 16:00:00 -0500</ts:date></price:time>
    <price:value>10000/100</price:value>
  </price>
  <price>
    <price:commodity><cmdty:space>FUND</cmdty:space><cmdty:id>VTIAX</cmdty:id></price:commodity>
    <price:currency><cmdty:space>ISO4217</cmdty:space><cmdty:id>USD</cmdty:id></price:currency>
    <price:time><ts:date>2024-01-02 16:00:00 -0500</ts:date></price:time>
    <price:value>1000/100</price:value>
  </price>
  <price>
    <price:commodity><cmdty:space>FUND</cmdty:space><cmdty:id>VTIAX</cmdty:id></price:commodity>
    <price:currency><cmdty:space>ISO4217</cmdty:space><cmdty:id>EUR</cmdty:id></price:currency>
    <price:time><ts:date>2024-01-03 16:00:00 +0100</ts:date></price:time>
    <price:value>900/100</price:value>
  </price>
</gnc:pricedb>
<gnc:account version="2.0.0">
  <act:name>Root Account</act:name>
  <act:id type="guid">a-root</act:id>
  <act:type>ROOT</act:type>
</gnc:account>
<gnc:account version="2.0.0">
  <act:name>Checking</act:name>
  <act:id type="guid">a-checking</act:id>
  <act:type>BANK</act:type>
  <act:commodity><cmdty:space>ISO4217</cmdty:space><cmdty:id>USD</cmdty:id></act:commodity>
</gnc:account>
<gnc:account version="2.0.0">
  <act:name>Roth IRA VTSAX</act:name>
  <act:id type="guid">a-vtsax</act:id>
  <act:type>MUTUAL</act:type>
  <act:commodity><cmdty:space>FUND</cmdty:space><cmdty:id>VTSAX</cmdty:id></act:commodity>
</gnc:account>
<gnc:account version="2.0.0">
  <act:name>Roth IRA VTIAX</act:name>
  <act:id type="guid">a-vtiax</act:id>
  <act:type>MUTUAL</act:type>
  <act:commodity><cmdty:space>FUND</cmdty:space><cmdty:id>VTIAX</cmdty:id></act:commodity>
</gnc:account>
<gnc:transaction version="2.0.0">
  <trn:splits>
    <trn:split>
      <split:value>59400/100</split:value>
      <split:quantity>66/10</split:quantity>
      <split:account type="guid">a-vtsax</split:account>
    </trn:split>
    <trn:split>
      <split:value>20000/100</split:value>
      <split:quantity>2000/100</split:quantity>
      <split:account type="guid">a-vtiax</split:account>
    </trn:split>
    <trn:split>
      <split:value>-79400/100</split:value>
      <split:quantity>-79400/100</split:quantity>
      <split:account type="guid">a-checking</split:account>
    </trn:split>
  </trn:splits>
</gnc:transaction>
</gnc:book>
</gnc-v2>
"""


@pytest.fixture
def xml_book(tmp_path: Path) -> Path:
    """Uncompressed GnuCash XML book worth $660 VTSAX and $200 VTIAX."""
    path = tmp_path / "book.xml.gnucash"
    path.write_text(XML_BOOK, encoding="utf-8")
    return path


@pytest.fixture
def gzip_xml_book(tmp_path: Path) -> Path:
    """The xml_book contents, gzip-compressed the way GnuCash saves them."""
    path = tmp_path / "book.gz.gnucash"
    with gzip.open(path, "wb") as f:
        f.write(XML_BOOK.encode("utf-8"))
    return path
