"""Data models for the loan control engine.

This module defines dataclasses representing the entities used by the engine:
the loan parameters, the rate regime resolved for them, the individual
payments of the biweekly schedule and the aggregated summary. Payments and
loan details are frozen so that every change produces a new value that can be
compared and serialized.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Union

PENDING = "pending"
PAID = "paid"
PARTIAL = "partial"
PAYMENT_STATUSES = (PENDING, PAID, PARTIAL)


@dataclass(frozen=True)
class SingleRate:
    """One periodic rate applied to every period of the loan.

    ``converged`` is False when the rate was solved and the search stopped
    short of the target balance, so the rate is only approximate.
    """

    periodic_rate: Decimal
    converged: bool = True

    @property
    def standard_rate(self) -> Decimal:
        return self.periodic_rate

    def rate_for(self, index: int) -> Decimal:
        return self.periodic_rate


@dataclass(frozen=True)
class DualRate:
    """Two periodic rates split around a known-balance pivot.

    Attributes
    ----------
    initial_rate: Decimal
        Rate that carried the principal down to the known balance. It applies
        to the 0-based period indices below ``pivot``.
    future_rate: Decimal
        Rate that carries the known balance down to zero. It applies from
        index ``pivot`` onwards and is the rate shown to the user.
    pivot: int
        Number of payments already made when the balance was observed.
    converged: bool
        False when either of the two rate searches stopped short of its
        target balance.
    """

    initial_rate: Decimal
    future_rate: Decimal
    pivot: int
    converged: bool = True

    @property
    def standard_rate(self) -> Decimal:
        return self.future_rate

    def rate_for(self, index: int) -> Decimal:
        return self.initial_rate if index <= self.pivot - 1 else self.future_rate


RateRegime = Union[SingleRate, DualRate]


@dataclass(frozen=True)
class LoanDetails:
    """Parameters of a biweekly loan.

    ``regime`` is derived by :func:`loan_control.engine.resolve_loan` and is
    ``None`` for details that come straight from user input.
    """

    amount: Decimal
    payments_count: int
    biweekly_payment: Decimal
    first_payment_date: date
    annual_interest_rate: Optional[Decimal] = None  # percent, 24 periods per year
    payments_made: int = 0
    known_remaining_balance: Optional[Decimal] = None
    previous_debt: Optional[Decimal] = None  # display only
    regime: Optional[RateRegime] = None


@dataclass(frozen=True)
class Payment:
    """One row of the biweekly schedule.

    ``remaining_balance`` is the idealized balance computed when the schedule
    was generated; it does not follow the amounts actually paid.
    """

    id: int
    payment_number: int
    payment_date: date
    amount: Decimal
    principal: Decimal
    interest: Decimal
    remaining_balance: Decimal
    status: str = PENDING  # "pending", "paid" or "partial"
    amount_paid: Optional[Decimal] = None


@dataclass(frozen=True)
class RateSolution:
    """Result of the bisection rate search.

    ``annual_rate`` follows the 24-periods-per-year convention of the
    displayed rate. ``converged`` is False when the iteration budget ran out
    before the simulated balance reached the target within a cent.
    """

    periodic_rate: Decimal
    annual_rate: Decimal
    converged: bool = True


@dataclass(frozen=True)
class LoanSummary:
    total_loan: Decimal
    total_paid: Decimal
    remaining_balance: Decimal
    paid_count: int
    total_interest: Decimal
    shortfall: Decimal
    previous_debt: Decimal

    @property
    def total_debt(self) -> Decimal:
        """Remaining balance plus the unrelated previous debt."""
        return self.remaining_balance + self.previous_debt
