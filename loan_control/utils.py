"""Utility functions for the loan control engine.

This module provides helpers for parsing user input into Python data types,
for cent rounding, and for generating the semi-monthly pay dates of a loan.
Pay days follow a fixed convention: the 15th and the 30th of every month,
with the 28th standing in for the 30th in February.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Iterator, Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

CENT = Decimal("0.01")
MID_MONTH_PAY_DAY = 15

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` to ``Decimal`` going through ``str`` for floats."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_cents(value: Decimal) -> Decimal:
    """Round a monetary amount to two decimal places, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_iso_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string into a ``date`` object.

    Raises
    ------
    ValueError
        If the string is not a valid ISO calendar date.
    """
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value}") from exc


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and surrounding whitespace. It raises
    ``ValueError`` if conversion fails or the value is not finite.
    """
    try:
        result = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def eom_pay_day(dt: date) -> int:
    """Return the end-of-month pay day for the month of ``dt``."""
    return 28 if dt.month == 2 else 30


def next_pay_date(dt: date) -> date:
    """Return the pay date following ``dt``.

    Dates in the first half of the month move to the end-of-month pay day of
    the same month; later dates move to the 15th of the following month.
    """
    if dt.day <= MID_MONTH_PAY_DAY:
        return dt.replace(day=eom_pay_day(dt))
    if dt.month == 12:
        return date(dt.year + 1, 1, MID_MONTH_PAY_DAY)
    return date(dt.year, dt.month + 1, MID_MONTH_PAY_DAY)


def payment_dates(count: int, first_date: date) -> Iterator[date]:
    """Yield ``count`` semi-monthly pay dates starting at ``first_date``.

    The first date is yielded exactly as given, even when it is not a regular
    pay day.
    """
    current = first_date
    for index in range(count):
        if index > 0:
            current = next_pay_date(current)
        yield current
