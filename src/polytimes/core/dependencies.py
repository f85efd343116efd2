"""FastAPI dependencies for dependency injection.

Long-lived resources (database pool, market monitor) are created in the
application lifespan and kept on ``app.state``; handlers receive them through
these dependencies so tests can override them.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request

from polytimes.config import Settings, get_settings
from polytimes.markets.polymarket import PolymarketClient
from polytimes.monitoring.monitor import MarketMonitor
from polytimes.storage.database import Database

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_db(request: Request) -> Database | None:
    """Get the backend handle, or None when no database is configured."""
    return getattr(request.app.state, "db", None)


def get_market_monitor(request: Request, settings: SettingsDep) -> MarketMonitor:
    """Get the shared MarketMonitor, creating it on first use."""
    monitor: MarketMonitor | None = getattr(request.app.state, "monitor", None)
    if monitor is None:
        monitor = MarketMonitor(settings)
        request.app.state.monitor = monitor
    return monitor


async def get_polymarket_client(settings: SettingsDep) -> AsyncIterator[PolymarketClient]:
    """Yield a Polymarket client that is closed after the request."""
    async with PolymarketClient(base_url=settings.polymarket_gamma_api_url) as client:
        yield client


DbDep = Annotated[Database | None, Depends(get_db)]
MarketMonitorDep = Annotated[MarketMonitor, Depends(get_market_monitor)]
PolymarketClientDep = Annotated[PolymarketClient, Depends(get_polymarket_client)]
