"""Test configuration utilities and shared fixtures."""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Make ``src`` importable when pytest runs without an editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from gigtrack.backend.app import create_app  # noqa: E402
from gigtrack.backend.app.services.ledger import (  # noqa: E402
    InMemoryLedgerRepository,
    LedgerStore,
)
from gigtrack.backend.config.rates_config import (  # noqa: E402
    YearConfiguration,
    load_year_configuration,
)


@pytest.fixture()
def configuration() -> YearConfiguration:
    """Return the 2025 rate tables the fixtures below are computed against."""

    return load_year_configuration(2025)


@pytest.fixture()
def ledger() -> LedgerStore:
    """Return an empty in-memory ledger."""

    return LedgerStore(InMemoryLedgerRepository())


@pytest.fixture()
def fixed_clock():
    """Clock pinned to Wednesday 16 July 2025, 09:30 in Sydney (23:30 UTC the day before)."""

    return lambda: datetime(2025, 7, 15, 23, 30, tzinfo=timezone.utc)


@pytest.fixture()
def app(ledger: LedgerStore) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(ledger)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
