"""
Tests for ledger statistics.

Tests: rebalancer/services/stats.py
"""

from decimal import Decimal
from pathlib import Path

import pytest

from rebalancer.exceptions import ExpenseAccountNotFoundError
from rebalancer.services.stats import LedgerStats
from rebalancer.tests.conftest import ACCOUNTS, write_sqlite_book


@pytest.mark.services
@pytest.mark.integration
class TestLedgerStats:
    def test_income_before_taxes(self, sqlite_book: Path) -> None:
        assert LedgerStats(sqlite_book).income_before_taxes() == Decimal("5000")

    def test_taxes_include_subaccounts(self, sqlite_book: Path) -> None:
        assert LedgerStats(sqlite_book).taxes_paid() == Decimal("1000")

    def test_after_tax_income(self, sqlite_book: Path) -> None:
        assert LedgerStats(sqlite_book).after_tax_income() == Decimal("4000")

    def test_charitable_giving(self, sqlite_book: Path) -> None:
        assert LedgerStats(sqlite_book).charitable_giving() == Decimal("250")

    def test_top_level_expense_account(self, sqlite_book: Path) -> None:
        assert LedgerStats(sqlite_book).top_level_expense_account("Taxes") == "a-taxes"

    def test_nested_account_is_not_top_level(self, sqlite_book: Path) -> None:
        with pytest.raises(ExpenseAccountNotFoundError, match="Federal"):
            LedgerStats(sqlite_book).top_level_expense_account("Federal")

    def test_missing_charity_account(self, tmp_path: Path) -> None:
        accounts = [a for a in ACCOUNTS if a[0] != "a-charity"]
        path = write_sqlite_book(tmp_path / "book.gnucash", accounts=accounts)

        stats = LedgerStats(path)
        assert stats.taxes_paid() == Decimal("1000")
        with pytest.raises(ExpenseAccountNotFoundError, match="Charity"):
            stats.charitable_giving()
