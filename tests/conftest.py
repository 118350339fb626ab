"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import List
from fastapi.testclient import TestClient

from forma_analytics.api.dependencies import get_forecast_service
from forma_analytics.api.main import create_app
from forma_analytics.config import settings
from forma_analytics.domain.models import SpendingTransaction, TransactionType
from forma_analytics.infrastructure.observability.errors import error_tracker
from forma_analytics.services.forecast_service import ForecastService
from tests.fakes import FakeTransactionSource


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch):
    """Run every test in the test environment with fresh error counters"""
    monkeypatch.setattr(settings, "environment", "test")
    monkeypatch.setattr(settings, "enable_test_logs", False)
    error_tracker.reset_counts()
    yield
    error_tracker.reset_counts()


@pytest.fixture
def daily_history() -> List[SpendingTransaction]:
    """30 consecutive days of 100/day expenses ending yesterday, plus a salary"""
    start = date.today() - timedelta(days=30)
    transactions = [
        SpendingTransaction(
            amount=Decimal("100"),
            transaction_date=start + timedelta(days=i),
            type=TransactionType.EXPENSE,
        )
        for i in range(30)
    ]
    transactions.append(
        SpendingTransaction(amount=Decimal("3000"), transaction_date=start, type=TransactionType.INCOME)
    )
    return transactions


@pytest.fixture
def fake_source(daily_history: List[SpendingTransaction]) -> FakeTransactionSource:
    return FakeTransactionSource(historical=daily_history)


@pytest.fixture
def forecast_service(fake_source: FakeTransactionSource) -> ForecastService:
    return ForecastService(fake_source, ttl_seconds=300)


@pytest.fixture
def client(forecast_service: ForecastService) -> TestClient:
    """Create FastAPI test client backed by the in-memory source"""
    app = create_app()
    app.dependency_overrides[get_forecast_service] = lambda: forecast_service
    return TestClient(app)
