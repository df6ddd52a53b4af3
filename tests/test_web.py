"""
Tests for the Flask JSON API. The test client keeps the session cookie, so
consecutive requests in one test work on the same saved loan.
"""
import pytest

LOAN_FORM = {
    "amount": "10000",
    "payments_count": 24,
    "biweekly_payment": "500",
    "first_payment_date": "2024-01-15",
    "annual_interest_rate": "24",
}


@pytest.fixture
def calculated(client):
    response = client.post("/api/loan", json=LOAN_FORM)
    assert response.status_code == 201
    return response.get_json()


def test_calculate_returns_schedule_and_summary(calculated):
    assert calculated["loan"]["regime"] == {"kind": "single", "periodic_rate": "0.01", "converged": True}
    first = calculated["payments"][0]
    assert first["payment_date"] == "2024-01-15"
    assert first["remaining_balance"] == "9600.00"
    assert first["status"] == "pending"
    assert calculated["summary"]["remaining_balance"] == 10000.0


def test_calculate_accepts_form_data(client):
    response = client.post("/api/loan", data={k: str(v) for k, v in LOAN_FORM.items()})
    assert response.status_code == 201


def test_invalid_loan_is_rejected(client):
    response = client.post("/api/loan", json=dict(LOAN_FORM, biweekly_payment="0"))
    assert response.status_code == 400
    assert "Biweekly payment must be a positive number" in response.get_json()["error"]


def test_get_loan_before_calculating(client):
    assert client.get("/api/loan").status_code == 404


def test_get_loan_returns_saved_state(client, calculated):
    response = client.get("/api/loan")
    assert response.status_code == 200
    assert response.get_json()["payments"] == calculated["payments"]


def test_toggle_payment(client, calculated):
    response = client.post("/api/payments/1/toggle")
    assert response.status_code == 200
    data = response.get_json()
    assert data["payments"][0]["status"] == "paid"
    assert data["summary"]["paid_count"] == 1
    assert data["summary"]["remaining_balance"] == 9600.0

    data = client.post("/api/payments/1/toggle").get_json()
    assert data["payments"][0]["status"] == "pending"
    assert data["summary"]["remaining_balance"] == 10000.0


def test_record_partial_amount(client, calculated):
    response = client.post("/api/payments/1/amount", json={"amount_paid": "300"})
    assert response.status_code == 200
    data = response.get_json()
    assert data["payments"][0]["status"] == "partial"
    assert data["payments"][0]["amount_paid"] == "300"
    assert data["summary"]["shortfall"] == 200.0

    data = client.post("/api/payments/1/amount", json={"amount_paid": ""}).get_json()
    assert data["payments"][0]["amount_paid"] is None
    assert data["payments"][0]["status"] == "pending"


def test_mutations_need_a_loan(client):
    assert client.post("/api/payments/1/toggle").status_code == 404


def test_unknown_payment_id(client, calculated):
    assert client.post("/api/payments/999/toggle").status_code == 404


def test_clear_loan(client, calculated):
    assert client.delete("/api/loan").status_code == 204
    assert client.get("/api/loan").status_code == 404


def test_known_balance_loan(client):
    form = dict(
        LOAN_FORM,
        amount="3600.45",
        payments_count=8,
        annual_interest_rate="",
        payments_made="6",
        known_remaining_balance="981.56",
    )
    data = client.post("/api/loan", json=form).get_json()
    assert data["loan"]["regime"]["kind"] == "dual"
    assert data["loan"]["regime"]["pivot"] == 6
    assert data["loan"]["regime"]["converged"] is True
    assert data["warnings"] == []
    assert data["payments"][5]["remaining_balance"] == "981.56"
    assert [p["status"] for p in data["payments"][:7]] == ["paid"] * 6 + ["pending"]


def test_sessions_do_not_share_loans(app, calculated):
    other = app.test_client()
    assert other.get("/api/loan").status_code == 404


def test_approximate_rate_is_reported(client):
    form = dict(LOAN_FORM, annual_interest_rate="", payments_made="6", known_remaining_balance="7500")
    data = client.post("/api/loan", json=form).get_json()
    assert data["loan"]["regime"]["converged"] is False
    assert len(data["warnings"]) == 1
    assert "approximate" in data["warnings"][0]

    saved = client.get("/api/loan").get_json()
    assert saved["warnings"] == data["warnings"]


@pytest.mark.parametrize("raw", [True, [300], {"value": 300}])
def test_non_numeric_amount_clears_payment(client, calculated, raw):
    client.post("/api/payments/1/amount", json={"amount_paid": "300"})
    response = client.post("/api/payments/1/amount", json={"amount_paid": raw})
    assert response.status_code == 200
    data = response.get_json()
    assert data["payments"][0]["amount_paid"] is None
    assert data["payments"][0]["status"] == "pending"


def test_corrupt_snapshot_is_a_client_error(app, client, calculated):
    with client.session_transaction() as sess:
        token = sess["user_token"]
    store = app.extensions["snapshot_store"]
    data = store.load(token)
    data["payments"][0] = "garbage"
    store.save(token, data)

    response = client.post("/api/payments/1/toggle")
    assert response.status_code == 400
    assert "Invalid saved loan data" in response.get_json()["error"]
    assert client.get("/api/loan").status_code == 400


def test_previous_debt_adds_to_total_debt(client):
    data = client.post("/api/loan", json=dict(LOAN_FORM, previous_debt="1500")).get_json()
    assert data["summary"]["previous_debt"] == 1500.0
    assert data["summary"]["total_debt"] == 11500.0
