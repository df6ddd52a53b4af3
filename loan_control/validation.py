"""Validation of raw loan parameters.

The engine degrades to empty schedules on bad numbers instead of raising, so
user-facing layers (the CLI and the web API) run the checks below first and
report a readable message.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Union

from .data_models import LoanDetails
from .engine import annual_to_periodic
from .utils import decimal_from_str, parse_iso_date

RawValue = Optional[Union[str, int, float, Decimal]]


class LoanInputError(ValueError):
    """Raised when loan parameters cannot produce a schedule."""


def validate_loan_details(details: LoanDetails) -> LoanDetails:
    """Check ``details`` and return it unchanged when it is valid."""
    if details.amount <= 0:
        raise LoanInputError("Loan amount must be a positive number.")
    if details.payments_count <= 0:
        raise LoanInputError("Number of payments must be a positive number.")
    if details.payments_made < 0:
        raise LoanInputError("Payments made must be zero or a positive number.")
    if details.payments_made >= details.payments_count:
        raise LoanInputError("Payments made must be lower than the total number of payments.")
    if details.biweekly_payment <= 0:
        raise LoanInputError("Biweekly payment must be a positive number.")

    known = details.known_remaining_balance
    rate = details.annual_interest_rate
    if known is None and (rate is None or rate <= 0):
        raise LoanInputError("Provide an annual interest rate or a known remaining balance.")
    if known is not None and known <= 0:
        raise LoanInputError("Known remaining balance must be a positive number.")

    if known is None:
        first_interest = details.amount * annual_to_periodic(rate)
        if details.biweekly_payment <= first_interest:
            raise LoanInputError("Biweekly payment is too low to cover the loan interest.")
    return details


def _optional_decimal(value: RawValue, label: str) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return decimal_from_str(str(value))
    except ValueError as exc:
        raise LoanInputError(f"{label} must be a number.") from exc


def _optional_int(value: RawValue, label: str) -> Optional[int]:
    number = _optional_decimal(value, label)
    if number is None:
        return None
    if number != number.to_integral_value():
        raise LoanInputError(f"{label} must be a whole number.")
    return int(number)


def parse_loan_details(
    amount: RawValue,
    payments_count: RawValue,
    biweekly_payment: RawValue,
    first_payment_date: Union[str, date, None],
    annual_interest_rate: RawValue = None,
    payments_made: RawValue = None,
    known_remaining_balance: RawValue = None,
    previous_debt: RawValue = None,
) -> LoanDetails:
    """Build validated :class:`LoanDetails` from raw form or CLI values.

    Empty strings count as missing values. Raises :class:`LoanInputError`
    with a message suitable for display.
    """
    parsed_amount = _optional_decimal(amount, "Loan amount")
    parsed_count = _optional_int(payments_count, "Number of payments")
    parsed_payment = _optional_decimal(biweekly_payment, "Biweekly payment")
    if parsed_amount is None:
        raise LoanInputError("Loan amount must be a positive number.")
    if parsed_count is None:
        raise LoanInputError("Number of payments must be a positive number.")
    if parsed_payment is None:
        raise LoanInputError("Biweekly payment must be a positive number.")

    if not first_payment_date:
        raise LoanInputError("Select the date of the first payment.")
    if isinstance(first_payment_date, date):
        first_date = first_payment_date
    else:
        try:
            first_date = parse_iso_date(first_payment_date)
        except ValueError as exc:
            raise LoanInputError(str(exc)) from exc

    details = LoanDetails(
        amount=parsed_amount,
        payments_count=parsed_count,
        biweekly_payment=parsed_payment,
        first_payment_date=first_date,
        annual_interest_rate=_optional_decimal(annual_interest_rate, "Annual interest rate"),
        payments_made=_optional_int(payments_made, "Payments made") or 0,
        known_remaining_balance=_optional_decimal(
            known_remaining_balance, "Known remaining balance"
        ),
        previous_debt=_optional_decimal(previous_debt, "Previous debt"),
    )
    return validate_loan_details(details)
