"""Command-line interface for the loan control tool.

This module uses the ``click`` library to implement a multi-command
interface. Users can calculate a biweekly schedule (optionally inferring the
rate from a known balance), solve for a rate on its own, and keep track of
actual payments in a saved snapshot. Results can be printed to the terminal
or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import click

from .data_models import LoanDetails, LoanSummary, Payment
from .engine import generate_schedule, rate_warnings, resolve_loan, solve_rate
from .formatter import print_loan, print_rate, print_schedule, print_summary
from .serialization import (
    SnapshotError,
    loan_to_dict,
    payment_to_dict,
    snapshot_from_dict,
    snapshot_to_dict,
    summary_to_dict,
)
from .snapshot_store import SnapshotStore, create_store_from_env
from .tracking import compute_summary, set_amount_paid, toggle_paid
from .utils import decimal_from_str
from .validation import LoanInputError, parse_loan_details

DEFAULT_SNAPSHOT_KEY = "loanControlData"


def build_loan_from_options(
    amount: str,
    payments_count: int,
    biweekly_payment: str,
    first_date: str,
    rate: Optional[str] = None,
    payments_made: Optional[int] = None,
    known_balance: Optional[str] = None,
    previous_debt: Optional[str] = None,
) -> LoanDetails:
    """Validate raw options and return resolved loan details."""
    try:
        details = parse_loan_details(
            amount,
            payments_count,
            biweekly_payment,
            first_date,
            annual_interest_rate=rate,
            payments_made=payments_made,
            known_remaining_balance=known_balance,
            previous_debt=previous_debt,
        )
    except LoanInputError as exc:
        raise click.BadParameter(str(exc))
    return resolve_loan(details)


def export_to_json(
    path: Path, details: LoanDetails, payments: Sequence[Payment], summary: LoanSummary
) -> None:
    """Export loan, schedule and summary to a JSON file."""
    data = {
        "loan": loan_to_dict(details),
        "summary": summary_to_dict(summary),
        "payments": [payment_to_dict(p) for p in payments],
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, payments: Sequence[Payment]) -> None:
    """Export the schedule to a CSV file."""
    header = [
        "Payment_Number",
        "Date",
        "Payment",
        "Principal",
        "Interest",
        "Remaining_Balance",
        "Status",
        "Amount_Paid",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for p in payments:
            writer.writerow(
                [
                    p.payment_number,
                    p.payment_date.isoformat(),
                    float(p.amount),
                    float(p.principal),
                    float(p.interest),
                    float(p.remaining_balance),
                    p.status,
                    "" if p.amount_paid is None else float(p.amount_paid),
                ]
            )


def export_to_path(
    output: str, details: LoanDetails, payments: Sequence[Payment], summary: LoanSummary
) -> Path:
    path = Path(output)
    if path.suffix.lower() == ".json":
        export_to_json(path, details, payments, summary)
    elif path.suffix.lower() == ".csv":
        export_to_csv(path, payments)
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv")
    return path


def _store(ctx: click.Context) -> SnapshotStore:
    obj: Dict[str, Any] = ctx.obj
    if obj.get("store") is None:
        obj["store"] = create_store_from_env(obj.get("database"))
    return obj["store"]


def _load_saved(ctx: click.Context) -> Tuple[LoanDetails, Tuple[Payment, ...]]:
    data = _store(ctx).load(ctx.obj["key"])
    if data is None:
        raise click.ClickException("No saved loan found; run 'calculate --save' first.")
    try:
        return snapshot_from_dict(data)
    except SnapshotError as exc:
        raise click.ClickException(str(exc))


def _save(ctx: click.Context, details: LoanDetails, payments: Sequence[Payment]) -> None:
    _store(ctx).save(ctx.obj["key"], snapshot_to_dict(details, payments))


@click.group()
@click.option(
    "--database",
    "database",
    envvar="LOAN_CONTROL_DATABASE_URL",
    help="SQLAlchemy URL of the snapshot store (default: local SQLite file)",
)
@click.option("--key", "key", default=DEFAULT_SNAPSHOT_KEY, show_default=True, help="Snapshot name")
@click.option("--verbose", "-v", "verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, database: Optional[str], key: str, verbose: bool) -> None:
    """Biweekly loan schedule calculator and payment tracker."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj.update({"database": database, "key": key})

    @ctx.call_on_close
    def _dispose_store() -> None:
        store = ctx.obj.get("store")
        if store is not None:
            store.dispose()


@cli.command()
@click.option("--amount", "-a", "amount", required=True, help="Loan principal")
@click.option("--payments", "-n", "payments_count", required=True, type=int, help="Total number of biweekly payments")
@click.option("--payment", "-p", "biweekly_payment", required=True, help="Fixed biweekly payment")
@click.option("--first-date", "-d", "first_date", required=True, help="First payment date (YYYY-MM-DD)")
@click.option("--rate", "-r", "rate", help="Annual interest rate (percent, 24 periods per year)")
@click.option("--payments-made", "payments_made", type=int, default=0, help="Payments already made")
@click.option("--known-balance", "known_balance", help="Balance known after the payments already made")
@click.option("--previous-debt", "previous_debt", help="Unrelated previous debt, shown in the summary")
@click.option("--save", "save", is_flag=True, help="Save the schedule as the current snapshot")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_context
def calculate(
    ctx: click.Context,
    amount: str,
    payments_count: int,
    biweekly_payment: str,
    first_date: str,
    rate: Optional[str],
    payments_made: int,
    known_balance: Optional[str],
    previous_debt: Optional[str],
    save: bool,
    output: Optional[str],
) -> None:
    """Compute and print the biweekly payment schedule."""
    details = build_loan_from_options(
        amount,
        payments_count,
        biweekly_payment,
        first_date,
        rate,
        payments_made,
        known_balance,
        previous_debt,
    )
    payments = generate_schedule(details)
    summary = compute_summary(details, payments)
    if save:
        _save(ctx, details, payments)
        click.echo(f"Loan saved as '{ctx.obj['key']}'")
    if output:
        path = export_to_path(output, details, payments, summary)
        click.echo(f"Schedule exported to {path}")
        for warning in rate_warnings(details):
            click.echo(f"Warning: {warning}", err=True)
    else:
        print_loan(details)
        print_summary(summary, details.payments_count)
        print_schedule(payments)


@cli.command("solve-rate")
@click.option("--amount", "-a", "amount", required=True, help="Starting balance")
@click.option("--payment", "-p", "biweekly_payment", required=True, help="Fixed biweekly payment")
@click.option("--payments", "-n", "payments_count", required=True, type=int, help="Number of payments")
@click.option("--target", "-t", "target", default="0", show_default=True, help="Balance left after the payments")
def solve_rate_command(amount: str, biweekly_payment: str, payments_count: int, target: str) -> None:
    """Find the rate that takes AMOUNT down to TARGET in the given payments."""
    try:
        values = [decimal_from_str(v) for v in (amount, biweekly_payment, target)]
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    solution = solve_rate(values[0], values[1], payments_count, target_balance=values[2])
    print_rate(solution)


@cli.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Print the saved loan, its live summary and its schedule."""
    details, payments = _load_saved(ctx)
    print_loan(details)
    print_summary(compute_summary(details, payments), details.payments_count)
    print_schedule(payments)


@cli.command()
@click.argument("payment_id", type=int)
@click.argument("amount", type=str)
@click.pass_context
def pay(ctx: click.Context, payment_id: int, amount: str) -> None:
    """Record AMOUNT as paid for payment PAYMENT_ID (empty text clears it)."""
    details, payments = _load_saved(ctx)
    if not any(p.id == payment_id for p in payments):
        raise click.BadParameter(f"No payment with id {payment_id}")
    payments = set_amount_paid(payments, payment_id, amount)
    _save(ctx, details, payments)
    print_summary(compute_summary(details, payments), details.payments_count)


@cli.command()
@click.argument("payment_id", type=int)
@click.pass_context
def toggle(ctx: click.Context, payment_id: int) -> None:
    """Flip payment PAYMENT_ID between paid and pending."""
    details, payments = _load_saved(ctx)
    if not any(p.id == payment_id for p in payments):
        raise click.BadParameter(f"No payment with id {payment_id}")
    payments = toggle_paid(payments, payment_id)
    _save(ctx, details, payments)
    print_summary(compute_summary(details, payments), details.payments_count)


@cli.command()
@click.argument("output", type=str)
@click.pass_context
def export(ctx: click.Context, output: str) -> None:
    """Export the saved loan to OUTPUT (.json or .csv)."""
    details, payments = _load_saved(ctx)
    path = export_to_path(output, details, payments, compute_summary(details, payments))
    click.echo(f"Schedule exported to {path}")


if __name__ == "__main__":
    cli()
