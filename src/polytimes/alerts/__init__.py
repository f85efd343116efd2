"""Market alerts read model."""

from polytimes.alerts.models import (
    AlertMarketData,
    AlertsResponse,
    AlertType,
    MarketAlert,
    Urgency,
)

__all__ = [
    "AlertMarketData",
    "AlertType",
    "AlertsResponse",
    "MarketAlert",
    "Urgency",
]
