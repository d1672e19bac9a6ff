"""Money utilities for the reconciliation layer.

This module provides the low-level numeric helpers every calculator uses:
- Resolving missing or invalid numbers to a default (the single place
  where the "never block the dashboard" zero-coercion policy lives)
- Rounding to cents
- Percentages and division without divide-by-zero

All arithmetic is done in Decimal. Amounts are rounded to cents only at
the edges (results), never in intermediate sums.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

ZERO = Decimal("0")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def resolve_decimal(value: Any, default: Optional[Decimal] = None) -> Decimal:
    """Resolve a possibly missing number to a Decimal.

    Args:
        value: The value to resolve (Decimal, int, float, str or None)
        default: Value returned when ``value`` is missing or not a finite
            number (defaults to zero)

    Returns:
        The value as a finite Decimal, or the default

    Example:
        >>> resolve_decimal(None)
        Decimal('0')
        >>> resolve_decimal("12.5")
        Decimal('12.5')
        >>> resolve_decimal(None, default=Decimal("15"))
        Decimal('15')
    """
    fallback = ZERO if default is None else default

    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, Decimal):
        number = value
    else:
        if isinstance(value, str) and not value.strip():
            return fallback
        try:
            number = Decimal(str(value).strip())
        except (ArithmeticError, ValueError, TypeError):
            return fallback

    if not number.is_finite():
        return fallback
    return number


def to_cents(value: Decimal) -> Decimal:
    """Round an amount to cents using ROUND_HALF_UP.

    Example:
        >>> to_cents(Decimal("10.005"))
        Decimal('10.01')
        >>> to_cents(Decimal("300"))
        Decimal('300.00')
    """
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Compute ``percent`` % of ``amount``.

    Example:
        >>> percentage_of(Decimal("2000"), Decimal("15"))
        Decimal('300')
    """
    return amount * percent / HUNDRED


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning zero when the denominator is zero.

    Example:
        >>> safe_ratio(Decimal("300"), Decimal("800"))
        Decimal('0.375')
        >>> safe_ratio(Decimal("300"), Decimal("0"))
        Decimal('0')
    """
    if denominator == ZERO:
        return ZERO
    return numerator / denominator


def sum_decimals(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimals, returning Decimal zero for an empty iterable."""
    return sum(values, ZERO)
