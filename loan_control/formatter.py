"""Output helpers for the loan control tool.

This module provides simple functions to render payment schedules, summaries
and solved rates in a tabular text format using built-in printing and string
formatting.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .data_models import DualRate, LoanDetails, LoanSummary, Payment, RateSolution
from .engine import APPROXIMATE_RATE_WARNING, rate_warnings

STATUS_LABELS = {"pending": "Pending", "paid": "Paid", "partial": "Partial"}


def print_loan(details: LoanDetails) -> None:
    """Print the parameters of a loan, including its resolved rates."""
    print("Loan")
    print("-" * 72)
    print(f"Amount             : {details.amount:.2f}")
    print(f"Payments           : {details.payments_count}")
    print(f"Biweekly payment   : {details.biweekly_payment:.2f}")
    print(f"First payment      : {details.first_payment_date.isoformat()}")
    if details.annual_interest_rate is not None:
        print(f"Annual rate (x24)  : {details.annual_interest_rate:.4f}%")
    if details.payments_made:
        print(f"Payments made      : {details.payments_made}")
    if details.known_remaining_balance is not None:
        print(f"Known balance      : {details.known_remaining_balance:.2f}")
    regime = details.regime
    if isinstance(regime, DualRate):
        print(f"Initial phase rate : {regime.initial_rate * 100:.6f}% per period")
        print(f"Future rate        : {regime.future_rate * 100:.6f}% per period")
    elif regime is not None:
        print(f"Periodic rate      : {regime.standard_rate * 100:.6f}% per period")
    for warning in rate_warnings(details):
        print(f"Warning: {warning}")
    print("-" * 72)


def print_summary(summary: LoanSummary, total_payments: Optional[int] = None) -> None:
    """Print the live totals of a loan in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Total loan         : {summary.total_loan:.2f}")
    print(f"Total paid         : {summary.total_paid:.2f}")
    print(f"Remaining balance  : {summary.remaining_balance:.2f}")
    if total_payments:
        print(f"Payments completed : {summary.paid_count} / {total_payments}")
    else:
        print(f"Payments completed : {summary.paid_count}")
    print(f"Scheduled interest : {summary.total_interest:.2f}")
    if summary.shortfall:
        print(f"Shortfall          : {summary.shortfall:.2f}")
    if summary.previous_debt:
        print(f"Previous debt      : {summary.previous_debt:.2f}")
        print(f"Total debt         : {summary.total_debt:.2f}")
    print("-" * 72)


def print_schedule(payments: Iterable[Payment]) -> None:
    """Print the payment schedule as a simple table."""
    headers = ["No", "Date", "Payment", "Principal", "Interest", "Balance", "Status", "Paid"]
    print("\t".join(headers))
    for p in payments:
        row = [
            str(p.payment_number),
            p.payment_date.isoformat(),
            f"{p.amount:.2f}",
            f"{p.principal:.2f}",
            f"{p.interest:.2f}",
            f"{p.remaining_balance:.2f}",
            STATUS_LABELS.get(p.status, p.status),
            "" if p.amount_paid is None else f"{p.amount_paid:.2f}",
        ]
        print("\t".join(row))


def print_rate(solution: RateSolution) -> None:
    print(f"Periodic rate      : {solution.periodic_rate * 100:.6f}%")
    print(f"Annual rate (x24)  : {solution.annual_rate:.4f}%")
    if not solution.converged:
        print(f"Warning: {APPROXIMATE_RATE_WARNING}")
