"""Growth projections for retirement planning."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.utils import timezone

from rebalancer.utils.decimals import to_cents

SAFE_WITHDRAWAL_RATE = Decimal("0.04")

# APY is paid on the full calendar year; leap years pay the same as others.
DAYS_PER_BANKING_YEAR = Decimal("365.25")


@dataclass(frozen=True)
class RetirementProjection:
    age: int
    retire_on: date
    total: Decimal
    safe_withdrawal: Decimal


def banking_years(earlier_date: date, later_date: date) -> Decimal:
    """Return the banking years between two dates."""
    if earlier_date >= later_date:
        raise ValueError("Dates must be in order")
    return Decimal((later_date - earlier_date).days) / DAYS_PER_BANKING_YEAR


def compound(
    principal: Decimal, apy: Decimal, end_date: date, today: date | None = None
) -> Decimal:
    """Compound the principal at the given APY from today until end_date."""
    years = banking_years(today or timezone.localdate(), end_date)
    return to_cents(principal * (1 + apy) ** years)


def safe_withdrawal_income(principal: Decimal) -> Decimal:
    """Identify an annual income that can be safely maintained in perpetuity."""
    return principal * SAFE_WITHDRAWAL_RATE


def _anniversary(birthday: date, year: int) -> date:
    try:
        return birthday.replace(year=year)
    except ValueError:
        # Feb 29th only exists in leap years
        return birthday.replace(year=year, day=28)


def retirement_projection(
    birthday: date,
    portfolio_total: Decimal,
    real_apy: Decimal,
    today: date | None = None,
) -> list[RetirementProjection]:
    """
    Project the portfolio's worth at a handful of retirement ages.

    The first row is today's value. Later rows start at age 50 (or five years
    from now, if later) and step by five years up to fifteen years beyond.
    """
    today = today or timezone.localdate()
    if birthday >= today:
        raise ValueError("Cannot retire before being born...")

    had_birthday = (today.month, today.day) >= (birthday.month, birthday.day)
    age_today = today.year - birthday.year - (0 if had_birthday else 1)
    rows = [
        RetirementProjection(
            age=age_today,
            retire_on=today,
            total=portfolio_total,
            safe_withdrawal=safe_withdrawal_income(portfolio_total),
        )
    ]

    start_age = max(50, age_today + 5)
    for age in range(start_age, start_age + 16, 5):
        retire_on = _anniversary(birthday, birthday.year + age)
        future_total = compound(portfolio_total, real_apy, retire_on, today)
        rows.append(
            RetirementProjection(
                age=age,
                retire_on=retire_on,
                total=future_total,
                safe_withdrawal=safe_withdrawal_income(future_total),
            )
        )
    return rows
