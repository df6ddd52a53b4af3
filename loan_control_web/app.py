import logging
import os
from logging.handlers import RotatingFileHandler
from uuid import uuid4

from flask import Flask, current_app, jsonify, request, session

from loan_control.engine import generate_schedule, rate_warnings, resolve_loan
from loan_control.serialization import (
    SnapshotError,
    loan_to_dict,
    payment_to_dict,
    snapshot_from_dict,
    snapshot_to_dict,
    summary_to_dict,
)
from loan_control.snapshot_store import create_store_from_env
from loan_control.tracking import compute_summary, set_amount_paid, toggle_paid
from loan_control.validation import LoanInputError, parse_loan_details
from loan_control_web.config import config

LOAN_FIELDS = (
    "amount",
    "payments_count",
    "biweekly_payment",
    "first_payment_date",
    "annual_interest_rate",
    "payments_made",
    "known_remaining_balance",
    "previous_debt",
)


def configure_logging(app):
    """Configure application logging"""
    if not app.debug and not app.testing:
        log_dir = os.path.dirname(app.config["LOG_FILE"])
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        file_handler = RotatingFileHandler(app.config["LOG_FILE"], maxBytes=10240000, backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info("Loan control startup")
    else:
        app.logger.setLevel(logging.DEBUG)
        app.logger.info("Loan control startup (DEBUG mode)")


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _store():
    return current_app.extensions["snapshot_store"]


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _state_response(details, payments, status: int = 200):
    summary = compute_summary(details, payments)
    return jsonify({
        "loan": loan_to_dict(details),
        "payments": [payment_to_dict(p) for p in payments],
        "summary": summary_to_dict(summary),
        "warnings": rate_warnings(details),
    }), status


def _load_state(user_token: str):
    """Return the saved (details, payments) of the session, or None."""
    data = _store().load(user_token)
    if data is None:
        return None
    return snapshot_from_dict(data)


def _mutate_payment(payment_id: int, transform):
    user_token = _ensure_user_token()
    try:
        state = _load_state(user_token)
    except SnapshotError as exc:
        current_app.logger.warning("could not restore snapshot for %s: %s", user_token, exc)
        return _error(str(exc), 400)
    if state is None:
        return _error("No loan has been calculated yet.", 404)
    details, payments = state
    if not any(p.id == payment_id for p in payments):
        return _error(f"No payment with id {payment_id}.", 404)
    payments = transform(payments)
    _store().save(user_token, snapshot_to_dict(details, payments))
    return _state_response(details, payments)


def create_app(config_name=None, **overrides):
    """Application factory pattern"""
    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.config.update(overrides)
    app.secret_key = app.config["SECRET_KEY"]

    configure_logging(app)
    app.extensions["snapshot_store"] = create_store_from_env(app.config.get("DATABASE_URL"))

    @app.post("/api/loan")
    def calculate_loan():
        form = request.get_json(silent=True) or request.form
        values = {name: form.get(name) for name in LOAN_FIELDS}
        try:
            details = parse_loan_details(**values)
        except LoanInputError as exc:
            return _error(str(exc), 400)
        details = resolve_loan(details)
        payments = generate_schedule(details)
        user_token = _ensure_user_token()
        for warning in rate_warnings(details):
            app.logger.warning("%s (session %s)", warning, user_token)
        _store().save(user_token, snapshot_to_dict(details, payments))
        app.logger.debug("calculated %d payments for %s", len(payments), user_token)
        return _state_response(details, payments, 201)

    @app.get("/api/loan")
    def current_loan():
        user_token = _ensure_user_token()
        try:
            state = _load_state(user_token)
        except SnapshotError as exc:
            app.logger.warning("could not restore snapshot for %s: %s", user_token, exc)
            return _error(str(exc), 400)
        if state is None:
            return _error("No loan has been calculated yet.", 404)
        return _state_response(*state)

    @app.delete("/api/loan")
    def clear_loan():
        _store().delete(_ensure_user_token())
        return "", 204

    @app.post("/api/payments/<int:payment_id>/toggle")
    def toggle_payment(payment_id):
        return _mutate_payment(payment_id, lambda payments: toggle_paid(payments, payment_id))

    @app.post("/api/payments/<int:payment_id>/amount")
    def record_amount(payment_id):
        form = request.get_json(silent=True) or request.form
        raw_amount = form.get("amount_paid")
        return _mutate_payment(
            payment_id, lambda payments: set_amount_paid(payments, payment_id, raw_amount)
        )

    return app


if __name__ == "__main__":
    print("Starting Loan Control web app...")
    create_app("development").run(host="0.0.0.0", port=8710, debug=True)
