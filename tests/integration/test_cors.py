"""Integration tests covering CORS behaviour for API endpoints."""

import pytest
from flask.testing import FlaskClient

from gigtrack.backend.app import create_app
from gigtrack.backend.app.services.ledger import InMemoryLedgerRepository, LedgerStore

ALLOWED_ORIGIN = "https://allowed.test"
DISALLOWED_ORIGIN = "https://blocked.test"


@pytest.fixture()
def cors_client(monkeypatch: pytest.MonkeyPatch) -> FlaskClient:
    """Return a client configured with a known CORS allow-list."""

    monkeypatch.setenv("GIGTRACK_ALLOWED_ORIGINS", f" {ALLOWED_ORIGIN} ,")

    app = create_app(LedgerStore(InMemoryLedgerRepository()))
    app.config.update(TESTING=True)

    with app.test_client() as client:
        yield client


def test_allowed_origin_receives_cors_headers(cors_client: FlaskClient) -> None:
    response = cors_client.get(
        "/api/v1/config/years",
        headers={"Origin": ALLOWED_ORIGIN},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_ORIGIN


def test_preflight_request_allows_ledger_methods(cors_client: FlaskClient) -> None:
    response = cors_client.options(
        "/api/v1/incomes/abc",
        headers={
            "Origin": ALLOWED_ORIGIN,
            "Access-Control-Request-Method": "DELETE",
        },
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_ORIGIN
    assert "DELETE" in response.headers.get("Access-Control-Allow-Methods", "")


def test_disallowed_origin_does_not_receive_cors_headers(cors_client: FlaskClient) -> None:
    response = cors_client.get(
        "/api/v1/config/years",
        headers={"Origin": DISALLOWED_ORIGIN},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") is None
