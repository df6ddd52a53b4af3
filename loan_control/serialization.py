"""Conversion of loans and schedules to and from plain dictionaries.

Snapshots are JSON-friendly: dates are ISO-8601 strings and money and rates
are decimal strings, so a saved loan restores to exactly the same values.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .data_models import (
    PAYMENT_STATUSES,
    DualRate,
    LoanDetails,
    LoanSummary,
    Payment,
    RateRegime,
    SingleRate,
)
from .utils import decimal_from_str, parse_iso_date

SNAPSHOT_VERSION = 1


class SnapshotError(ValueError):
    """Raised when a stored snapshot cannot be restored."""


def _dec(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _opt_dec(value: Any) -> Optional[Decimal]:
    return None if value is None else decimal_from_str(str(value))


def regime_to_dict(regime: Optional[RateRegime]) -> Optional[Dict[str, Any]]:
    if regime is None:
        return None
    if isinstance(regime, DualRate):
        return {
            "kind": "dual",
            "initial_rate": str(regime.initial_rate),
            "future_rate": str(regime.future_rate),
            "pivot": regime.pivot,
            "converged": regime.converged,
        }
    return {
        "kind": "single",
        "periodic_rate": str(regime.periodic_rate),
        "converged": regime.converged,
    }


def regime_from_dict(data: Optional[Dict[str, Any]]) -> Optional[RateRegime]:
    if data is None:
        return None
    kind = data.get("kind")
    if kind == "single":
        return SingleRate(
            decimal_from_str(str(data["periodic_rate"])),
            converged=bool(data.get("converged", True)),
        )
    if kind == "dual":
        return DualRate(
            initial_rate=decimal_from_str(str(data["initial_rate"])),
            future_rate=decimal_from_str(str(data["future_rate"])),
            pivot=int(data["pivot"]),
            converged=bool(data.get("converged", True)),
        )
    raise SnapshotError(f"Unknown rate regime: {kind!r}")


def loan_to_dict(details: LoanDetails) -> Dict[str, Any]:
    return {
        "amount": str(details.amount),
        "payments_count": details.payments_count,
        "biweekly_payment": str(details.biweekly_payment),
        "first_payment_date": details.first_payment_date.isoformat(),
        "annual_interest_rate": _dec(details.annual_interest_rate),
        "payments_made": details.payments_made,
        "known_remaining_balance": _dec(details.known_remaining_balance),
        "previous_debt": _dec(details.previous_debt),
        "regime": regime_to_dict(details.regime),
    }


def loan_from_dict(data: Dict[str, Any]) -> LoanDetails:
    return LoanDetails(
        amount=decimal_from_str(str(data["amount"])),
        payments_count=int(data["payments_count"]),
        biweekly_payment=decimal_from_str(str(data["biweekly_payment"])),
        first_payment_date=parse_iso_date(data["first_payment_date"]),
        annual_interest_rate=_opt_dec(data.get("annual_interest_rate")),
        payments_made=int(data.get("payments_made") or 0),
        known_remaining_balance=_opt_dec(data.get("known_remaining_balance")),
        previous_debt=_opt_dec(data.get("previous_debt")),
        regime=regime_from_dict(data.get("regime")),
    )


def payment_to_dict(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "payment_number": payment.payment_number,
        "payment_date": payment.payment_date.isoformat(),
        "amount": str(payment.amount),
        "principal": str(payment.principal),
        "interest": str(payment.interest),
        "remaining_balance": str(payment.remaining_balance),
        "status": payment.status,
        "amount_paid": _dec(payment.amount_paid),
    }


def payment_from_dict(data: Dict[str, Any]) -> Payment:
    status = data.get("status", "pending")
    if status not in PAYMENT_STATUSES:
        raise SnapshotError(f"Unknown payment status: {status!r}")
    return Payment(
        id=int(data["id"]),
        payment_number=int(data["payment_number"]),
        payment_date=parse_iso_date(data["payment_date"]),
        amount=decimal_from_str(str(data["amount"])),
        principal=decimal_from_str(str(data["principal"])),
        interest=decimal_from_str(str(data["interest"])),
        remaining_balance=decimal_from_str(str(data["remaining_balance"])),
        status=status,
        amount_paid=_opt_dec(data.get("amount_paid")),
    )


def summary_to_dict(summary: LoanSummary) -> Dict[str, Any]:
    """Convert a summary to floats for display and charting."""
    return {
        "total_loan": float(summary.total_loan),
        "total_paid": float(summary.total_paid),
        "remaining_balance": round(float(summary.remaining_balance), 2),
        "paid_count": summary.paid_count,
        "total_interest": float(summary.total_interest),
        "shortfall": float(summary.shortfall),
        "previous_debt": float(summary.previous_debt),
        "total_debt": round(float(summary.total_debt), 2),
    }


def snapshot_to_dict(
    details: LoanDetails,
    payments: Sequence[Payment],
    saved_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Bundle a loan and its schedule into one serializable snapshot."""
    return {
        "version": SNAPSHOT_VERSION,
        "loan": loan_to_dict(details),
        "payments": [payment_to_dict(p) for p in payments],
        "timestamp": (saved_at or datetime.now(timezone.utc)).isoformat(),
    }


def snapshot_from_dict(data: Dict[str, Any]) -> Tuple[LoanDetails, Tuple[Payment, ...]]:
    """Restore the loan and schedule stored by :func:`snapshot_to_dict`.

    Raises
    ------
    SnapshotError
        If the snapshot is missing fields or holds malformed values.
    """
    try:
        details = loan_from_dict(data["loan"])
        payments: List[Payment] = [payment_from_dict(p) for p in data["payments"]]
    except SnapshotError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"Invalid saved loan data: {exc}") from exc
    return details, tuple(payments)
