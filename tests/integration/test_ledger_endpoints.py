"""Integration tests for the income, expense, settings and summary endpoints."""

from __future__ import annotations

from http import HTTPStatus

import pytest
from flask.testing import FlaskClient


def _post_income(client: FlaskClient, **payload):
    payload.setdefault("date", "2025-07-14")
    return client.post("/api/v1/incomes", json=payload)


def test_income_creation_then_merge(client: FlaskClient) -> None:
    created = _post_income(client, doordash=20, coles=50)
    merged = _post_income(client, doordash=10, coles="")

    assert created.status_code == HTTPStatus.CREATED
    assert created.get_json()["merged"] is False
    assert merged.status_code == HTTPStatus.OK
    body = merged.get_json()
    assert body["merged"] is True
    assert body["income"]["doordash"] == 30
    assert body["income"]["coles"] == 50

    listing = client.get("/api/v1/incomes").get_json()["incomes"]
    assert len(listing) == 1


def test_incomes_are_listed_newest_first(client: FlaskClient) -> None:
    _post_income(client, date="2025-07-09", tips=1)
    _post_income(client, date="2025-07-10", tips=2)

    listing = client.get("/api/v1/incomes").get_json()["incomes"]

    assert [entry["date"] for entry in listing] == ["2025-07-10", "2025-07-09"]


def test_income_update_and_delete(client: FlaskClient) -> None:
    record_id = _post_income(client, ubereats=40).get_json()["income"]["id"]

    updated = client.put(
        f"/api/v1/incomes/{record_id}", json={"date": "2025-07-14", "ubereats": 45}
    )
    assert updated.status_code == HTTPStatus.OK
    assert updated.get_json()["income"]["ubereats"] == 45

    deleted = client.delete(f"/api/v1/incomes/{record_id}")
    assert deleted.status_code == HTTPStatus.OK
    assert client.get("/api/v1/incomes").get_json()["incomes"] == []


def test_unknown_income_returns_not_found(client: FlaskClient) -> None:
    response = client.delete("/api/v1/incomes/missing")

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.get_json()["error"] == "not_found"


def test_income_requires_a_date(client: FlaskClient) -> None:
    response = client.post("/api/v1/incomes", json={"doordash": 10})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "validation_error"


def test_expense_lifecycle(client: FlaskClient) -> None:
    created = client.post(
        "/api/v1/expenses", json={"date": "2025-07-14", "name": "Fuel", "amount": "45.50"}
    )
    assert created.status_code == HTTPStatus.CREATED
    record_id = created.get_json()["expense"]["id"]

    updated = client.put(
        f"/api/v1/expenses/{record_id}",
        json={"date": "2025-07-14", "name": "Fuel", "amount": 50},
    )
    assert updated.get_json()["expense"]["amount"] == 50

    assert client.delete(f"/api/v1/expenses/{record_id}").status_code == HTTPStatus.OK
    assert client.get("/api/v1/expenses").get_json()["expenses"] == []


def test_settings_round_trip(client: FlaskClient) -> None:
    assert client.get("/api/v1/settings").get_json() == {"tax_rate": 20, "weekly_target": 1000}

    response = client.put("/api/v1/settings", json={"weekly_target": 750})

    assert response.get_json() == {"tax_rate": 20, "weekly_target": 750}


def test_settings_reject_out_of_range_rate(client: FlaskClient) -> None:
    response = client.put("/api/v1/settings", json={"tax_rate": 150})

    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_summary_all_window(client: FlaskClient) -> None:
    _post_income(client, doordash=100, ubereats=50, didi=30, coles=400, tips=10)
    client.post("/api/v1/expenses", json={"date": "2025-07-14", "name": "Fuel", "amount": 20})

    payload = client.get("/api/v1/summary").get_json()

    assert payload["window"] == "all"
    assert payload["total_income"] == pytest.approx(584)
    assert payload["coles_tax"] == 6
    assert payload["net_balance"] == pytest.approx(564)
    assert payload["remaining"] == pytest.approx(416)
    assert payload["didi_gst_amount"] == pytest.approx(1)
    assert payload["source_totals"]["Uber Eats"] == 50


def test_summary_week_window_uses_reference_date(client: FlaskClient) -> None:
    _post_income(client, date="2025-07-13", doordash=500)
    _post_income(client, date="2025-07-14", doordash=100)

    payload = client.get("/api/v1/summary?window=week&date=2025-07-16").get_json()

    assert payload["doordash_income"] == 100


def test_summary_rejects_unknown_window(client: FlaskClient) -> None:
    response = client.get("/api/v1/summary?window=month")

    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_new_week_archives_records(client: FlaskClient) -> None:
    _post_income(client, doordash=100)
    client.post("/api/v1/expenses", json={"date": "2025-07-14", "name": "Fuel", "amount": 20})

    response = client.post("/api/v1/ledger/new-week")

    assert response.get_json() == {"archived_incomes": 1, "archived_expenses": 1}
    assert client.get("/api/v1/summary").get_json()["total_income"] == 0
    archived = client.get("/api/v1/incomes?include_archived=true").get_json()["incomes"]
    assert archived[0]["archived"] is True


def test_summary_and_set_aside_endpoint_agree_on_other_income(client: FlaskClient) -> None:
    client.put("/api/v1/settings", json={"tax_rate": 10})
    _post_income(client, source_name="Airtasker", income_type="abn", amount=200)

    summary = client.get("/api/v1/summary").get_json()
    quoted = client.post(
        "/api/v1/tax/set-aside", json={"amount": 200, "income_type": "abn"}
    ).get_json()

    assert quoted["set_aside"] == pytest.approx(50)
    assert summary["other_income"]["set_aside"]["self_employed_tax"] == quoted["set_aside"]
    assert summary["other_income"]["set_aside"]["total_tax"] == quoted["set_aside"]
    # The gig tax rate setting only drives the platform set-aside.
    assert summary["tax_rate"] == 10
