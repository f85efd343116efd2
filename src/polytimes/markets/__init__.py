"""Prediction market data sources."""

from polytimes.markets.polymarket import Market, PolymarketClient, parse_market

__all__ = ["Market", "PolymarketClient", "parse_market"]
