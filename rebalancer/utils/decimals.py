"""
Decimal helpers for money values read from, and shown to, the outside world.

Rounding happens only here, at display and reporting boundaries, and always
with banker's rounding (ROUND_HALF_EVEN). The rebalancing engine itself never
rounds.
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from rebalancer.exceptions import IncompleteRatioError, InvalidRatioError

CENT = Decimal("0.01")


def frac_to_quantity(fraction: str) -> Decimal:
    """
    Convert a GnuCash rational ('1109/100') to a Decimal.

    Raises:
        IncompleteRatioError: if the text has no '/' separator
        InvalidRatioError: if either side is not a number, or the denominator is 0

    Examples:
        >>> frac_to_quantity("3/4")
        Decimal('0.75')
    """
    numerator, sep, denominator = fraction.strip().partition("/")
    if not sep:
        raise IncompleteRatioError(f"Cannot parse {fraction!r} to a decimal quantity")

    try:
        dec_numerator = Decimal(numerator)
        dec_denominator = Decimal(denominator)
    except InvalidOperation as e:
        raise InvalidRatioError(f"Invalid fraction {fraction!r}") from e

    if not (dec_numerator.is_finite() and dec_denominator.is_finite()):
        raise InvalidRatioError(f"Invalid fraction {fraction!r}")
    if dec_denominator == 0:
        raise InvalidRatioError(f"Division by zero in fraction {fraction!r}")

    return dec_numerator / dec_denominator


def to_cents(amount: Decimal) -> Decimal:
    """Round to whole cents using banker's rounding."""
    return amount.quantize(CENT, rounding=ROUND_HALF_EVEN)


def format_dollars(amount: Decimal) -> str:
    """
    Format as $1,234.56 or ($1,234.56) for negatives.

    Examples:
        >>> format_dollars(Decimal("-1234.565"))
        '($1,234.56)'
    """
    cents = to_cents(amount)
    formatted = f"${abs(cents):,.2f}"
    return f"({formatted})" if cents < 0 else formatted


def format_percent(ratio: Decimal, decimals: int = 2) -> str:
    """Format a 0-1 ratio as a percentage, e.g. 0.1234 -> 12.34%."""
    quantum = Decimal(1).scaleb(-decimals)
    percent = (ratio * 100).quantize(quantum, rounding=ROUND_HALF_EVEN)
    return f"{percent}%"
