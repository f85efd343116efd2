"""Polymarket Gamma API client for market discovery.

The Gamma API provides read-only access to market data:
- Open events and their markets
- Current prices and volumes
- Market metadata

API Base: https://gamma-api.polymarket.com
"""

import json
from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from typing import Any

import httpx

from polytimes.config import get_settings
from polytimes.core.exceptions import PolymarketConnectionError
from polytimes.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Market:
    """Simplified market representation from Gamma API."""

    id: str
    condition_id: str
    question: str
    slug: str
    description: str | None
    category: str | None

    # Prices (0.0 to 1.0)
    yes_price: float
    no_price: float

    # Volume
    volume_24h: float
    volume_total: float

    end_date: datetime | None = None

    @property
    def url(self) -> str:
        """Get the Polymarket URL for this market."""
        return f"https://polymarket.com/event/{self.slug}"

    def to_alert_data(self) -> dict[str, Any]:
        """Denormalized snapshot stored in ``market_alerts.market_data``."""
        return {
            "id": self.id,
            "question": self.question,
            "slug": self.slug,
            "yesPrice": self.yes_price,
            "noPrice": self.no_price,
            "volume24hr": self.volume_24h,
            "category": self.category,
        }


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_market(data: dict[str, Any], event: dict[str, Any] | None = None) -> Market | None:
    """Parse a Gamma market payload into a binary ``Market``.

    Returns None for markets with more than two outcomes or without usable
    prices.
    """
    event = event or {}
    outcome_prices_str = data.get("outcomePrices")
    outcomes_str = data.get("outcomes")
    if not outcome_prices_str or not outcomes_str:
        return None

    try:
        prices = [float(p) for p in json.loads(outcome_prices_str)]
        outcomes = json.loads(outcomes_str)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning("Failed to parse outcomePrices", market_id=data.get("id"), error=str(e))
        return None

    # Skip markets with 3+ outcomes, they don't fit the yes/no model
    if len(outcomes) > 2 or len(prices) < 2:
        return None

    if not all(0.0 <= p <= 1.0 for p in prices[:2]):
        logger.warning("Invalid price value from API", prices=prices, market_id=data.get("id"))
        return None

    yes_price, no_price = prices[0], prices[1]
    lowered = [str(o).lower() for o in outcomes]
    if lowered == ["no", "yes"]:
        yes_price, no_price = no_price, yes_price

    question = data.get("question") or event.get("title") or ""
    if not question:
        return None

    return Market(
        id=str(data.get("id") or data.get("conditionId") or ""),
        condition_id=data.get("conditionId", ""),
        question=question,
        slug=event.get("slug") or data.get("slug", ""),
        description=data.get("description") or event.get("description"),
        category=data.get("category") or event.get("category"),
        yes_price=yes_price,
        no_price=no_price,
        volume_24h=float(data.get("volume24hr") or 0),
        volume_total=float(data.get("volume") or 0),
        end_date=_parse_datetime(data.get("endDate")),
    )


@dataclass
class PolymarketClient:
    """Client for Polymarket Gamma API (read-only market discovery)."""

    base_url: str = dataclass_field(default_factory=lambda: get_settings().polymarket_gamma_api_url)
    timeout: float = 30.0

    _client: httpx.AsyncClient | None = dataclass_field(default=None, init=False, repr=False)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PolymarketClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_open_markets(self, limit: int = 300) -> list[Market]:
        """Get the lead market of each open event.

        Args:
            limit: Maximum number of events to request

        Returns:
            Parsed binary markets, in API order

        Raises:
            PolymarketConnectionError: On HTTP or transport failure, or a
                response body that is not a JSON list
        """
        client = self._get_client()
        params: dict[str, Any] = {"limit": limit, "closed": "false"}
        log = logger.bind(limit=limit)

        try:
            response = await client.get("/events", params=params)
            response.raise_for_status()
            events = response.json()
        except httpx.HTTPStatusError as e:
            log.error("Polymarket events API error", status_code=e.response.status_code)
            raise PolymarketConnectionError(
                f"Polymarket events request failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            log.error("Polymarket events request error", error=str(e))
            raise PolymarketConnectionError(f"Polymarket events request failed: {e}") from e
        except ValueError as e:
            log.error("Polymarket events response is not JSON", error=str(e))
            raise PolymarketConnectionError("Polymarket events response is not valid JSON") from e

        if not isinstance(events, list):
            log.error("Unexpected Polymarket events payload", type=type(events).__name__)
            raise PolymarketConnectionError("Polymarket events response is not a list")

        markets: list[Market] = []
        for event in events:
            if not isinstance(event, dict):
                continue
            event_markets = event.get("markets")
            if not isinstance(event_markets, list) or not event_markets:
                continue
            if not isinstance(event_markets[0], dict):
                continue
            market = parse_market(event_markets[0], event)
            if market:
                markets.append(market)

        log.debug("Fetched open markets", events=len(events), markets=len(markets))
        return markets
