"""Tests for Polymarket client."""

import json
from typing import Any

import httpx
import pytest

from polytimes.core.exceptions import PolymarketConnectionError
from polytimes.markets.polymarket import Market, PolymarketClient, parse_market


def _market_payload(**overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": "516710",
        "conditionId": "0xabc",
        "question": "Will the Fed cut rates in December?",
        "slug": "fed-cut-december-market",
        "outcomes": json.dumps(["Yes", "No"]),
        "outcomePrices": json.dumps(["0.63", "0.37"]),
        "volume24hr": 125000.5,
        "volume": "2500000",
        "endDate": "2026-12-10T00:00:00Z",
    }
    data.update(overrides)
    return data


def _client_with(handler: Any) -> PolymarketClient:
    client = PolymarketClient(base_url="https://gamma.test")
    client._client = httpx.AsyncClient(
        base_url="https://gamma.test", transport=httpx.MockTransport(handler)
    )
    return client


class TestMarket:
    def test_url(self, market_factory) -> None:
        market = market_factory(slug="fed-dec")
        assert market.url == "https://polymarket.com/event/fed-dec"

    def test_alert_data_uses_camel_case_price(self, market_factory) -> None:
        data = market_factory(yes_price=0.62).to_alert_data()
        assert data["yesPrice"] == 0.62
        assert data["question"] == "Will the Fed cut in December?"
        assert data["slug"] == "fed-dec"


class TestParseMarket:
    def test_yes_no_market(self) -> None:
        market = parse_market(_market_payload(), {"slug": "fed-december", "title": "Fed"})
        assert isinstance(market, Market)
        assert market.id == "516710"
        assert market.yes_price == 0.63
        assert market.no_price == 0.37
        assert market.slug == "fed-december"
        assert market.volume_24h == 125000.5
        assert market.volume_total == 2500000.0
        assert market.end_date is not None and market.end_date.year == 2026

    def test_falls_back_to_market_slug(self) -> None:
        market = parse_market(_market_payload())
        assert market is not None
        assert market.slug == "fed-cut-december-market"

    def test_reversed_outcomes(self) -> None:
        market = parse_market(
            _market_payload(
                outcomes=json.dumps(["No", "Yes"]),
                outcomePrices=json.dumps(["0.2", "0.8"]),
            )
        )
        assert market is not None
        assert market.yes_price == 0.8
        assert market.no_price == 0.2

    def test_multi_outcome_skipped(self) -> None:
        payload = _market_payload(
            outcomes=json.dumps(["A", "B", "C"]),
            outcomePrices=json.dumps(["0.2", "0.3", "0.5"]),
        )
        assert parse_market(payload) is None

    def test_missing_prices_skipped(self) -> None:
        assert parse_market(_market_payload(outcomePrices=None)) is None

    def test_garbage_prices_skipped(self) -> None:
        assert parse_market(_market_payload(outcomePrices="not-json")) is None

    def test_out_of_range_prices_skipped(self) -> None:
        payload = _market_payload(outcomePrices=json.dumps(["1.4", "-0.4"]))
        assert parse_market(payload) is None

    def test_bad_end_date_tolerated(self) -> None:
        market = parse_market(_market_payload(endDate="soon"))
        assert market is not None
        assert market.end_date is None


class TestGetOpenMarkets:
    async def test_parses_lead_market_per_event(self) -> None:
        seen: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(
                200,
                json=[
                    {"slug": "event-1", "markets": [_market_payload(id="1"), _market_payload(id="x")]},
                    {"slug": "event-2", "markets": []},
                    {"slug": "event-3", "markets": [_market_payload(id="3", outcomePrices=None)]},
                    {"slug": "event-4", "markets": [_market_payload(id="4")]},
                ],
            )

        client = _client_with(handler)
        async with client:
            markets = await client.get_open_markets(limit=50)

        assert [m.id for m in markets] == ["1", "4"]
        assert seen["path"] == "/events"
        assert seen["params"] == {"limit": "50", "closed": "false"}

    async def test_http_error_raises(self) -> None:
        client = _client_with(lambda request: httpx.Response(503))
        with pytest.raises(PolymarketConnectionError, match="503"):
            await client.get_open_markets()
        await client.close()

    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client_with(handler)
        with pytest.raises(PolymarketConnectionError):
            await client.get_open_markets()
        await client.close()

    async def test_non_json_body_raises(self) -> None:
        client = _client_with(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        with pytest.raises(PolymarketConnectionError, match="not valid JSON"):
            await client.get_open_markets()
        await client.close()

    async def test_non_list_body_raises(self) -> None:
        client = _client_with(lambda request: httpx.Response(200, json={"error": "rate limited"}))
        with pytest.raises(PolymarketConnectionError, match="not a list"):
            await client.get_open_markets()
        await client.close()

    async def test_malformed_events_skipped(self) -> None:
        events = [
            "junk",
            {"slug": "no-markets"},
            {"slug": "bad-markets", "markets": "nope"},
            {"slug": "bad-market", "markets": ["nope"]},
            {"slug": "good", "markets": [_market_payload(id="7")]},
        ]
        client = _client_with(lambda request: httpx.Response(200, json=events))

        markets = await client.get_open_markets()

        assert [m.id for m in markets] == ["7"]
        await client.close()

    async def test_close_is_idempotent(self) -> None:
        client = PolymarketClient(base_url="https://gamma.test")
        client._get_client()
        await client.close()
        await client.close()
        assert client._client is None
