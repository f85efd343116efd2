"""In-process scheduling of monitoring runs.

Deployments behind an external cron call ``GET /api/monitor`` instead and
leave ``monitor_interval_minutes`` at 0.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from polytimes.core.logging import get_logger
from polytimes.markets.polymarket import PolymarketClient
from polytimes.monitoring.runner import run_monitoring

if TYPE_CHECKING:
    from polytimes.config import Settings
    from polytimes.monitoring.monitor import MarketMonitor
    from polytimes.storage.database import Database

logger = get_logger(__name__)

MONITOR_JOB_ID = "market_monitor"


def create_scheduler() -> AsyncIOScheduler:
    """Create a new scheduler instance."""
    return AsyncIOScheduler(timezone="UTC")


async def monitor_job(
    monitor: MarketMonitor,
    db: Database | None,
    settings: Settings,
) -> None:
    """Run one monitoring pass; failures are logged and the schedule continues."""
    try:
        async with PolymarketClient(base_url=settings.polymarket_gamma_api_url) as client:
            result = await run_monitoring(client, monitor, db, settings)
        logger.info("Monitor job finished", alerts=len(result.alerts))
    except Exception:
        logger.exception("Monitor job failed")


def schedule_monitoring(
    scheduler: AsyncIOScheduler,
    monitor: MarketMonitor,
    db: Database | None,
    settings: Settings,
) -> None:
    """Register the periodic monitor job (first run shortly after startup)."""
    scheduler.add_job(
        monitor_job,
        IntervalTrigger(minutes=settings.monitor_interval_minutes),
        args=[monitor, db, settings],
        id=MONITOR_JOB_ID,
        max_instances=1,
        misfire_grace_time=None,
        next_run_time=datetime.now(UTC) + timedelta(seconds=30),
    )
    logger.info("Market monitor scheduled", interval_minutes=settings.monitor_interval_minutes)
