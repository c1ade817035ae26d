# tests/conftest.py
"""
Shared Test Fixtures

In-memory SQLite store, mocked provider router and notifier, and wired
services on top of them.

Files that USE this module:
- pytest (fixtures injected into tests.*)

Files that this module USES:
- xconvert.adapters.persistence (Database)
- xconvert.application.* (services under test)
- unittest.mock (Mock for providers and notifications)
"""
import pytest  # Testing framework for writing and running tests

from unittest.mock import Mock  # Mock objects for providers and notification sinks

from xconvert.adapters.persistence.database import Database  # Store client
from xconvert.application.convert_service import ConvertService  # Conversion service
from xconvert.application.rates_service import RatesService  # Rate service
from xconvert.application.report_service import ReportService  # Report service


@pytest.fixture
def db():
    database = Database("sqlite://")
    assert database.connect()
    yield database
    database.close()


@pytest.fixture
def offline_db():
    """A store client that was never connected (demo mode)."""
    return Database("sqlite://")


@pytest.fixture
def router():
    mock_router = Mock()
    mock_router.try_rate.return_value = None
    mock_router.crypto.name = "coingecko"
    mock_router.fiat.name = "openexchangerates"
    return mock_router


@pytest.fixture
def notifier():
    return Mock()


@pytest.fixture
def rates_service(db, router, notifier):
    return RatesService(db, router, notifier)


@pytest.fixture
def convert_service(db, rates_service, notifier):
    return ConvertService(db, rates_service, notifier, demo_rate=0.85)


@pytest.fixture
def report_service(db):
    return ReportService(db)


@pytest.fixture
def usd_eur(rates_service):
    return rates_service.create({
        "fromCurrency": "USD",
        "toCurrency": "EUR",
        "rate": 0.85,
        "source": "manual",
    })
