"""Pytest fixtures and configuration."""

from datetime import UTC, datetime
from typing import Any

import pytest

from polytimes.alerts.models import MarketAlert
from polytimes.config import Settings
from polytimes.markets.polymarket import Market


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests by default unless -m integration is specified."""
    markexpr = config.getoption("-m", default="")
    if "integration" in markexpr:
        return

    skip_integration = pytest.mark.skip(reason="Integration test - run with: pytest -m integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]


def make_alert(**overrides: Any) -> MarketAlert:
    defaults: dict[str, Any] = {
        "id": "alert-1",
        "market_id": "m1",
        "alert_type": "MAJOR_SWING",
        "urgency": "HIGH",
        "headline": "FED CUT ODDS SURGE",
        "price_change": 0.18,
        "old_price": 0.42,
        "new_price": 0.60,
        "reasoning": "Crosses 50% on heavy volume.",
        "market_data": {"question": "Will the Fed cut in December?", "slug": "fed-dec", "yesPrice": 0.6},
        "created_at": datetime(2026, 10, 18, 12, 0, tzinfo=UTC),
    }
    defaults.update(overrides)
    return MarketAlert.model_validate(defaults)


def make_market(**overrides: Any) -> Market:
    defaults: dict[str, Any] = {
        "id": "m1",
        "condition_id": "cond-1",
        "question": "Will the Fed cut in December?",
        "slug": "fed-dec",
        "description": None,
        "category": "FINANCE",
        "yes_price": 0.6,
        "no_price": 0.4,
        "volume_24h": 2_500_000.0,
        "volume_total": 40_000_000.0,
    }
    defaults.update(overrides)
    return Market(**defaults)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def settings_factory() -> Any:
    return make_settings


@pytest.fixture
def alert_factory() -> Any:
    return make_alert


@pytest.fixture
def market_factory() -> Any:
    return make_market
