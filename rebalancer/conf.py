"""
Typed access to the REBALANCER settings dict.

Usage:
    from rebalancer.conf import get_settings

    config = get_settings()
    book = Book.from_settings(config)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from rebalancer.domain.assets import AssetClass
from rebalancer.exceptions import RebalancerError
from rebalancer.services.targets import parse_target_table

BOOK_FORMATS = ("sqlite3", "xml")


@dataclass(frozen=True)
class RebalancerSettings:
    """Validated rebalancer configuration.

    Attributes:
        birthday: Investor's date of birth (drives age-based targets)
        book_path: Path to the GnuCash book
        book_format: 'sqlite3' or 'xml'
        update_prices: Fetch fresh quotes for stale commodities
        classifications_path: CSV mapping ticker symbols to asset classes
        stocks_from_years: N in "N minus your age in stocks"
        real_apy: Real (inflation-adjusted) growth rate for projections
        targets: Explicit target table; empty means age-based targets
    """

    birthday: date
    book_path: Path
    book_format: str = "sqlite3"
    update_prices: bool = False
    classifications_path: Path | None = None
    stocks_from_years: int = 120
    real_apy: Decimal = Decimal("0.07")
    targets: dict[AssetClass, Decimal] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RebalancerSettings:
        try:
            birthday = raw.get("BIRTHDAY", "1985-01-01")
            if not isinstance(birthday, date):
                birthday = date.fromisoformat(birthday)
        except ValueError as e:
            raise ImproperlyConfigured(f"REBALANCER['BIRTHDAY'] must be YYYY-MM-DD: {e}") from e

        book_format = str(raw.get("BOOK_FORMAT", "sqlite3")).lower()
        if book_format not in BOOK_FORMATS:
            raise ImproperlyConfigured(
                f"REBALANCER['BOOK_FORMAT'] must be one of {BOOK_FORMATS}, got {book_format!r}"
            )

        try:
            real_apy = Decimal(str(raw.get("REAL_APY", "0.07")))
            stocks_from_years = int(raw.get("STOCKS_FROM_YEARS", 120))
        except (InvalidOperation, ValueError) as e:
            raise ImproperlyConfigured(f"Invalid numeric REBALANCER setting: {e}") from e

        targets = raw.get("TARGETS") or {}
        if isinstance(targets, str):
            try:
                targets = parse_target_table(targets)
            except RebalancerError as e:
                raise ImproperlyConfigured(f"REBALANCER['TARGETS']: {e}") from e

        classifications = raw.get("CLASSIFICATIONS")

        return cls(
            birthday=birthday,
            book_path=Path(raw.get("BOOK_PATH", "example/sqlite3.gnucash")),
            book_format=book_format,
            update_prices=bool(raw.get("UPDATE_PRICES", False)),
            classifications_path=Path(classifications) if classifications else None,
            stocks_from_years=stocks_from_years,
            real_apy=real_apy,
            targets=dict(targets),
        )


def get_settings() -> RebalancerSettings:
    """Build RebalancerSettings from django.conf.settings.REBALANCER."""
    return RebalancerSettings.from_dict(getattr(settings, "REBALANCER", {}))
