"""Payment tracking for a generated schedule.

The schedule is an immutable tuple of :class:`Payment` rows. Recording what
was actually paid never edits a row in place: each mutation returns a new
tuple, and :func:`compute_summary` re-walks the actual amounts from the
original principal every time, independently of the idealized balances
stored on the rows.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from .data_models import PAID, PARTIAL, PENDING, LoanDetails, LoanSummary, Payment
from .engine import annual_to_periodic
from .utils import CENT, Number, decimal_from_str, to_decimal

ZERO = Decimal("0")


def parse_amount_paid(raw: Optional[Number]) -> Optional[Decimal]:
    """Parse a user-entered amount; invalid or negative input clears it."""
    # bool is an int subclass but never an amount
    if raw is None or isinstance(raw, bool) or not isinstance(raw, (str, int, float, Decimal)):
        return None
    try:
        value = decimal_from_str(raw) if isinstance(raw, str) else to_decimal(raw)
    except (ValueError, ArithmeticError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


def status_for(amount: Decimal, amount_paid: Optional[Decimal]) -> str:
    if amount_paid is None:
        return PENDING
    if amount_paid >= amount - CENT:
        return PAID
    if amount_paid > 0:
        return PARTIAL
    return PENDING


def set_amount_paid(
    payments: Sequence[Payment], payment_id: int, raw_amount: Optional[Number]
) -> Tuple[Payment, ...]:
    """Return a new schedule with the amount paid of one row replaced."""
    amount_paid = parse_amount_paid(raw_amount)
    return tuple(
        replace(p, amount_paid=amount_paid, status=status_for(p.amount, amount_paid))
        if p.id == payment_id
        else p
        for p in payments
    )


def toggle_paid(payments: Sequence[Payment], payment_id: int) -> Tuple[Payment, ...]:
    """Return a new schedule with one row flipped between paid and pending.

    A partial or pending row becomes fully paid at its scheduled amount; a
    paid row goes back to pending with no amount.
    """
    toggled = []
    for p in payments:
        if p.id == payment_id:
            if p.status == PAID:
                p = replace(p, status=PENDING, amount_paid=None)
            else:
                p = replace(p, status=PAID, amount_paid=p.amount)
        toggled.append(p)
    return tuple(toggled)


def _last_active_index(payments: Sequence[Payment]) -> int:
    for index in range(len(payments) - 1, -1, -1):
        if payments[index].status != PENDING:
            return index
    return -1


def compute_summary(
    details: Optional[LoanDetails], payments: Sequence[Payment]
) -> LoanSummary:
    """Recompute the live totals of a loan from the amounts actually paid.

    The running balance always restarts at the original principal and
    accrues interest on whatever is still owed, up to the last row that is
    not pending. Loans with a known-balance pivot use the initial-phase rate
    up to the pivot and the future rate after it.
    """
    if details is None:
        return LoanSummary(ZERO, ZERO, ZERO, 0, ZERO, ZERO, ZERO)

    total_paid = sum((p.amount_paid or ZERO for p in payments), ZERO)
    paid_count = sum(1 for p in payments if p.status == PAID)
    total_interest = sum((p.interest for p in payments), ZERO)

    standard_rate = annual_to_periodic(details.annual_interest_rate or 0)
    balance = details.amount
    shortfall = ZERO
    last_index = _last_active_index(payments)
    for index in range(last_index + 1):
        payment = payments[index]
        if details.regime is not None:
            rate = details.regime.rate_for(index)
        else:
            rate = standard_rate
        actual = payment.amount_paid or ZERO
        balance = balance + balance * rate - actual
        shortfall += payment.amount - actual

    return LoanSummary(
        total_loan=details.amount,
        total_paid=total_paid,
        remaining_balance=ZERO if balance < CENT else balance,
        paid_count=paid_count,
        total_interest=total_interest if total_interest > 0 else ZERO,
        shortfall=shortfall if shortfall > 0 else ZERO,
        previous_debt=details.previous_debt or ZERO,
    )
