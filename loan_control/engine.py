"""Core calculation engine for the loan control tool.

This module implements the financial logic for biweekly loans: simulating the
amortization of a balance at a fixed periodic rate, searching for the rate
that produces a given balance, resolving the rate regime of a loan and
building its payment schedule. Every monetary step is rounded to cents as it
happens, so results match a ledger that rounds each payment.

Annual rates are expressed with a 24-periods-per-year convention
(``periodic * 24 * 100``), which is how the displayed rate is defined even
though it is not calendar-exact.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import List, Tuple, Union

from .data_models import (
    PAID,
    PENDING,
    DualRate,
    LoanDetails,
    Payment,
    RateSolution,
    SingleRate,
)
from .utils import CENT, Number, payment_dates, round_cents, to_decimal

logger = logging.getLogger(__name__)

PERIODS_PER_YEAR = 24
MAX_PERIODIC_RATE = Decimal("0.05")  # 5% per period (~120% nominal a year)
SOLVER_ITERATIONS = 100
SOLVER_TOLERANCE = CENT


class _Unpayable:
    """Result of a simulation where the payment never covers the interest."""

    def __repr__(self) -> str:
        return "UNPAYABLE"


UNPAYABLE = _Unpayable()

SimulationResult = Union[Decimal, _Unpayable]


def is_unpayable(result: SimulationResult) -> bool:
    return result is UNPAYABLE


def annual_to_periodic(annual_rate: Number) -> Decimal:
    """Convert an annual percentage into a periodic fraction."""
    return to_decimal(annual_rate) / Decimal(100) / Decimal(PERIODS_PER_YEAR)


def periodic_to_annual(periodic_rate: Decimal) -> Decimal:
    return periodic_rate * Decimal(PERIODS_PER_YEAR) * Decimal(100)


def simulate_balance(
    principal: Number, periodic_rate: Number, payment: Number, periods: int
) -> SimulationResult:
    """Return the balance left after ``periods`` fixed payments.

    Returns :data:`UNPAYABLE` as soon as a payment does not exceed the
    interest of its period. A negative balance is returned as soon as it
    appears, signalling that the loan was overpaid before the last period.
    """
    balance = to_decimal(principal)
    rate = to_decimal(periodic_rate)
    payment = to_decimal(payment)
    for _ in range(periods):
        interest = round_cents(balance * rate)
        if payment <= interest:
            return UNPAYABLE
        principal_paid = round_cents(payment - interest)
        balance = round_cents(balance - principal_paid)
        if balance < 0:
            return balance
    return balance


def solve_rate(
    amount: Number,
    payment: Number,
    periods: int,
    target_balance: Number = 0,
) -> RateSolution:
    """Find the periodic rate that leaves ``target_balance`` after ``periods``.

    The search is a bisection over ``[0, MAX_PERIODIC_RATE]``. It stops when
    the simulated balance is within a cent of the target, or after
    ``SOLVER_ITERATIONS`` halvings. The returned rate is an approximation
    bounded by the cent rounding of the simulation, not a closed form.
    """
    if periods <= 0:
        return RateSolution(Decimal(0), Decimal(0), True)

    target = to_decimal(target_balance)
    low = Decimal(0)
    high = MAX_PERIODIC_RATE
    mid = Decimal(0)
    converged = False
    for iteration in range(SOLVER_ITERATIONS):
        mid = (low + high) / 2
        final_balance = simulate_balance(amount, mid, payment, periods)
        # An unpayable loan owes more than any target: the rate is too high.
        if not is_unpayable(final_balance) and abs(final_balance - target) < SOLVER_TOLERANCE:
            converged = True
            logger.debug("rate solver converged after %d iterations: %s", iteration + 1, mid)
            break
        if is_unpayable(final_balance) or final_balance > target:
            high = mid
        else:
            low = mid

    if not converged:
        logger.warning(
            "rate solver did not reach the target balance %s within %d iterations "
            "(amount=%s, payment=%s, periods=%d)",
            target,
            SOLVER_ITERATIONS,
            amount,
            payment,
            periods,
        )
    return RateSolution(mid, periodic_to_annual(mid), converged)


def resolve_loan(details: LoanDetails) -> LoanDetails:
    """Return ``details`` with its rate regime resolved.

    With a known remaining balance and payments already made, the rate is
    solved twice: once for the past (principal down to the known balance)
    and once for the future (known balance down to zero). Without an annual
    rate, a single rate is solved over the whole term. Otherwise the annual
    rate is converted directly. A solved rate that missed its target keeps
    ``converged=False`` on the regime.
    """
    if details.known_remaining_balance and details.payments_made > 0:
        past = solve_rate(
            details.amount,
            details.biweekly_payment,
            details.payments_made,
            target_balance=details.known_remaining_balance,
        )
        future = solve_rate(
            details.known_remaining_balance,
            details.biweekly_payment,
            details.payments_count - details.payments_made,
        )
        regime = DualRate(
            initial_rate=past.periodic_rate,
            future_rate=future.periodic_rate,
            pivot=details.payments_made,
            converged=past.converged and future.converged,
        )
        return replace(details, annual_interest_rate=future.annual_rate, regime=regime)

    if not details.annual_interest_rate:
        solution = solve_rate(details.amount, details.biweekly_payment, details.payments_count)
        return replace(
            details,
            annual_interest_rate=solution.annual_rate,
            regime=SingleRate(solution.periodic_rate, converged=solution.converged),
        )

    return replace(
        details, regime=SingleRate(annual_to_periodic(details.annual_interest_rate))
    )


APPROXIMATE_RATE_WARNING = (
    "The rate search did not reach the target balance; the rate is approximate."
)


def rate_warnings(details: LoanDetails) -> List[str]:
    """Return the warnings to show alongside a resolved loan."""
    if details.regime is not None and not details.regime.converged:
        return [APPROXIMATE_RATE_WARNING]
    return []


def standard_periodic_rate(details: LoanDetails) -> Decimal:
    """Return the rate used for the idealized schedule of ``details``."""
    if details.regime is not None:
        return details.regime.standard_rate
    return annual_to_periodic(details.annual_interest_rate or 0)


def generate_schedule(details: LoanDetails) -> Tuple[Payment, ...]:
    """Build the idealized payment schedule of a loan.

    Parameters
    ----------
    details: LoanDetails
        The loan, preferably already passed through :func:`resolve_loan`.
        Unresolved details fall back to their annual rate.

    Returns
    -------
    Tuple[Payment, ...]
        One payment per period, stopping early once the balance is cleared.
        Degenerate inputs produce an empty tuple.
    """
    annual = details.annual_interest_rate or Decimal(0)
    if (
        details.amount <= 0
        or details.payments_count <= 0
        or details.biweekly_payment <= 0
        or annual < 0
    ):
        return ()

    rate = standard_periodic_rate(details)
    fixed_payment = details.biweekly_payment
    count = details.payments_count
    remaining_balance = details.amount
    schedule: List[Payment] = []

    for index, due_date in enumerate(payment_dates(count, details.first_payment_date)):
        if remaining_balance < CENT and index > 0:
            break

        interest = round_cents(remaining_balance * rate)
        payoff = round_cents(remaining_balance + interest)
        if index == count - 1 or payoff <= fixed_payment:
            # Final payment clears the whole balance plus its interest.
            payment_amount = payoff
            principal = remaining_balance
            new_balance = Decimal("0.00")
        else:
            payment_amount = fixed_payment
            principal = max(round_cents(fixed_payment - interest), Decimal("0.00"))
            new_balance = round_cents(remaining_balance - principal)

        if index + 1 == details.payments_made and details.known_remaining_balance:
            new_balance = details.known_remaining_balance

        initially_paid = index < details.payments_made
        schedule.append(
            Payment(
                id=index + 1,
                payment_number=index + 1,
                payment_date=due_date,
                amount=payment_amount,
                principal=principal,
                interest=interest,
                remaining_balance=new_balance,
                status=PAID if initially_paid else PENDING,
                amount_paid=payment_amount if initially_paid else None,
            )
        )
        remaining_balance = new_balance

    return tuple(schedule)
