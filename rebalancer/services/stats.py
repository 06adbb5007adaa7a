"""Income and giving statistics from a GnuCash SQLite book."""

from __future__ import annotations

from contextlib import closing
from decimal import Decimal
from pathlib import Path

import structlog

from rebalancer.exceptions import ExpenseAccountNotFoundError
from rebalancer.services.gnucash.sqlite import connect

logger = structlog.get_logger(__name__)

TOP_LEVEL_EXPENSE_SQL = """
    WITH root_account AS (
      SELECT guid
        FROM accounts
       WHERE name = 'Root Account'
         AND account_type = 'ROOT'
    ), root_expenses AS (
      SELECT guid
        FROM accounts
       WHERE name = 'Expenses'
         AND account_type = 'EXPENSE'
         AND parent_guid = (SELECT guid FROM root_account)
    )
    SELECT guid
      FROM accounts
     WHERE name = ?
       AND account_type = 'EXPENSE'
       AND parent_guid = (SELECT guid FROM root_expenses)
"""

SUBTREE_SPLITS_SQL = """
    WITH RECURSIVE child_accounts(guid) AS (
      VALUES(?)
       UNION
      SELECT accounts.guid
        FROM accounts, child_accounts
       WHERE accounts.parent_guid = child_accounts.guid
    )
    SELECT value_num, value_denom
      FROM splits
     WHERE account_guid IN (SELECT guid FROM child_accounts)
"""

INCOME_SPLITS_SQL = """
    SELECT value_num, value_denom
      FROM splits
     WHERE account_guid IN (SELECT guid FROM accounts WHERE account_type = 'INCOME')
"""


class LedgerStats:
    """Statistics over every transaction in a SQLite book."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _sum_splits(self, sql: str, params: tuple = ()) -> Decimal:
        with closing(connect(self.path)) as conn:
            rows = conn.execute(sql, params).fetchall()
        return sum(
            (Decimal(num) / Decimal(denom) for num, denom in rows if denom),
            Decimal("0"),
        )

    def top_level_expense_account(self, name: str) -> str:
        """Return the guid of Root -> Expenses -> name."""
        with closing(connect(self.path)) as conn:
            row = conn.execute(TOP_LEVEL_EXPENSE_SQL, (name,)).fetchone()
        if row is None:
            raise ExpenseAccountNotFoundError(f"Can't find Expenses account {name!r}")
        return row[0]

    def sum_all_transactions_in(self, root_guid: str) -> Decimal:
        """Sum all splits under the account and any of its descendants."""
        return self._sum_splits(SUBTREE_SPLITS_SQL, (root_guid,))

    def income_before_taxes(self) -> Decimal:
        """
        Sum all income before taxes.

        Double-entry books record income as negative; it is returned positive.
        """
        return -self._sum_splits(INCOME_SPLITS_SQL)

    def taxes_paid(self) -> Decimal:
        """Sum everything under Root -> Expenses -> Taxes (income tax, FICA, ...)."""
        return self.sum_all_transactions_in(self.top_level_expense_account("Taxes"))

    def after_tax_income(self) -> Decimal:
        """Total income less taxes paid; positive unless taxes exceed income."""
        return self.income_before_taxes() - self.taxes_paid()

    def charitable_giving(self) -> Decimal:
        return self.sum_all_transactions_in(self.top_level_expense_account("Charity"))
