"""
Shared pytest fixtures for the loan control test suite.

Loans are built directly as LoanDetails; web tests run the Flask app against
a temporary SQLite file so every test gets its own snapshot store.
"""
from datetime import date
from decimal import Decimal

import pytest

from loan_control.data_models import LoanDetails
from loan_control.engine import generate_schedule, resolve_loan


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------

@pytest.fixture
def simple_loan():
    """10,000 over 24 payments of 500 at 24% a year (1% per period)."""
    return resolve_loan(LoanDetails(
        amount=Decimal("10000"),
        payments_count=24,
        biweekly_payment=Decimal("500"),
        first_payment_date=date(2024, 1, 15),
        annual_interest_rate=Decimal("24"),
    ))


@pytest.fixture
def simple_schedule(simple_loan):
    return generate_schedule(simple_loan)


@pytest.fixture
def pivot_loan():
    """3,600.45 over 8 payments of 500, observed at 981.56 after six of them.

    At 2.5% per period the first six payments leave exactly 981.56, and at
    1.25% the last two clear it exactly, so both rate searches converge.
    """
    return resolve_loan(LoanDetails(
        amount=Decimal("3600.45"),
        payments_count=8,
        biweekly_payment=Decimal("500"),
        first_payment_date=date(2024, 1, 15),
        payments_made=6,
        known_remaining_balance=Decimal("981.56"),
    ))


@pytest.fixture
def unconverged_pivot_loan():
    """10,000 observed at 7,500 after six of 24 payments of 500.

    Cent rounding makes the final balance of the last 18 payments jump from
    +0.02 straight to a negative value, so that search never lands.
    """
    return resolve_loan(LoanDetails(
        amount=Decimal("10000"),
        payments_count=24,
        biweekly_payment=Decimal("500"),
        first_payment_date=date(2024, 1, 15),
        payments_made=6,
        known_remaining_balance=Decimal("7500"),
    ))


@pytest.fixture
def zero_rate_loan():
    return LoanDetails(
        amount=Decimal("1000"),
        payments_count=4,
        biweekly_payment=Decimal("250"),
        first_payment_date=date(2024, 3, 15),
        annual_interest_rate=Decimal("0"),
    )


# ---------------------------------------------------------------------------
# Storage / web
# ---------------------------------------------------------------------------

@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'loan_control_test.sqlite3'}"


@pytest.fixture
def app(database_url):
    from loan_control_web.app import create_app

    application = create_app("testing", DATABASE_URL=database_url)
    yield application
    application.extensions["snapshot_store"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()
