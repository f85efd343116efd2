"""One end-to-end monitoring run: fetch markets, compare, persist."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from polytimes.core.exceptions import NoMarketsError
from polytimes.core.logging import get_logger

if TYPE_CHECKING:
    from polytimes.config import Settings
    from polytimes.markets.polymarket import PolymarketClient
    from polytimes.monitoring.models import MonitorResult
    from polytimes.monitoring.monitor import MarketMonitor
    from polytimes.storage.database import Database

logger = get_logger(__name__)


async def run_monitoring(
    client: PolymarketClient,
    monitor: MarketMonitor,
    db: Database | None,
    settings: Settings,
    now: datetime | None = None,
) -> MonitorResult:
    """Run a monitoring pass and store its snapshot and alerts.

    Without a database there is no prior snapshot, so every run is a
    baseline run and nothing is stored.

    Raises:
        NoMarketsError: If Polymarket returned no usable markets
        PolymarketConnectionError: If Polymarket could not be reached
    """
    now = now or datetime.now(UTC)
    log = logger.bind(db_enabled=db is not None)
    log.info("Starting market monitoring check")

    markets = await client.get_open_markets(limit=settings.polymarket_events_limit)
    if not markets:
        raise NoMarketsError("No markets available")

    prior_snapshot = await db.get_latest_snapshot() if db else None
    result = await monitor.check(markets, prior_snapshot)

    if db:
        await db.insert_snapshot(result.snapshot, created_at=now)
        await db.delete_snapshots_before(
            now - timedelta(days=settings.monitor_snapshot_retention_days)
        )
        if result.alerts:
            saved = await db.insert_alerts(result.alerts, created_at=now)
            log.info("Alerts saved to database", count=saved)

    log.info(
        "Market monitoring check complete",
        markets=len(markets),
        alerts=len(result.alerts),
        had_prior_snapshot=bool(prior_snapshot),
    )
    return result
