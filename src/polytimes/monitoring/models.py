"""Data models for market monitoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from polytimes.alerts.models import Urgency
from polytimes.markets.polymarket import Market


@dataclass
class PriceMove:
    """A market whose yes price moved at least the swing threshold."""

    market: Market
    old_price: float
    new_price: float

    @property
    def change(self) -> float:
        """Absolute move (0.0 to 1.0)."""
        return abs(self.new_price - self.old_price)

    @property
    def signed_change(self) -> float:
        return self.new_price - self.old_price

    @property
    def direction(self) -> str:
        return "UP" if self.new_price > self.old_price else "DOWN"

    @property
    def points(self) -> int:
        """Move in percentage points."""
        return round(self.change * 100)


class AlertDecision(BaseModel):
    """LLM verdict for one detected price move."""

    index: int = Field(description="Index of the move in the prompt")
    should_alert: bool
    alert_type: str | None = Field(default=None, description="Usually one of the AlertType values")
    urgency: Urgency | None = None
    headline: str | None = Field(default=None, description="Max 6 words, ALL CAPS")
    reasoning: str = Field(default="", description="One sentence")


class MonitorEvaluation(BaseModel):
    """Structured LLM output for a monitoring pass."""

    alerts: list[AlertDecision] = Field(default_factory=list)
    overall_reasoning: str = ""


class NewAlert(BaseModel):
    """An alert produced by the monitor, ready to be stored."""

    market_id: str
    alert_type: str
    urgency: Urgency
    headline: str
    price_change: float
    old_price: float
    new_price: float
    reasoning: str | None = None
    market_data: dict[str, Any]

    @property
    def market_question(self) -> str:
        return str(self.market_data.get("question", ""))


class MonitorResult(BaseModel):
    """Outcome of one monitoring pass."""

    alerts: list[NewAlert] = Field(default_factory=list)
    snapshot: dict[str, float] = Field(default_factory=dict)
    reasoning: str = ""
