"""Market alert models.

Alerts are written by the market monitor and served read-only by
``GET /api/alerts``.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Urgency(StrEnum):
    """Severity of a market alert."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AlertType(StrEnum):
    """Alert types produced by the market monitor.

    ``MarketAlert.alert_type`` stays an open string; these are only the
    values this service writes.
    """

    MAJOR_SWING = "MAJOR_SWING"
    BREAKING_NEWS = "BREAKING_NEWS"
    VOLATILITY_SPIKE = "VOLATILITY_SPIKE"
    CONSENSUS_SHIFT = "CONSENSUS_SHIFT"


class AlertMarketData(BaseModel):
    """Snapshot of the market an alert refers to, as stored with the alert."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    question: str
    slug: str
    yes_price: float = Field(alias="yesPrice")


class MarketAlert(BaseModel):
    """A detected market-condition change, as stored in ``market_alerts``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    market_id: str
    alert_type: str
    urgency: Urgency
    headline: str
    price_change: float
    old_price: float
    new_price: float
    reasoning: str | None = None
    market_data: AlertMarketData
    created_at: datetime

    @field_validator("id", "market_id", mode="before")
    @classmethod
    def stringify_identifier(cls, v: Any) -> Any:
        # uuid / bigint primary keys come back from asyncpg as non-str
        if v is None or isinstance(v, str):
            return v
        return str(v)


class AlertsResponse(BaseModel):
    """Body of ``GET /api/alerts``."""

    alerts: list[MarketAlert] = Field(default_factory=list)
