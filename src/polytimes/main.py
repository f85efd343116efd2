"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from polytimes.api import api_router
from polytimes.api.routes.subscribe import limiter, rate_limit_exceeded_handler
from polytimes.config import Settings, get_settings
from polytimes.core.dependencies import DbDep
from polytimes.core.exceptions import DatabaseConnectionError
from polytimes.core.logging import get_logger, setup_logging
from polytimes.monitoring.monitor import MarketMonitor
from polytimes.monitoring.scheduler import create_scheduler, schedule_monitoring
from polytimes.storage.database import Database, init_database

logger = get_logger(__name__)


async def connect_database(settings: Settings) -> Database | None:
    """Connect to the configured database; None when unset or unreachable."""
    if not settings.database_url:
        logger.warning("No DATABASE_URL configured, alerts and subscriptions are disabled")
        return None
    try:
        return await init_database(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
    except DatabaseConnectionError as e:
        logger.error("Database unavailable, continuing without it", error=e.message)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: database pool and optional monitor schedule."""
    settings = get_settings()
    setup_logging(settings)

    db = await connect_database(settings)
    monitor = MarketMonitor(settings)
    scheduler: AsyncIOScheduler | None = None

    app.state.db = db
    app.state.monitor = monitor

    try:
        if settings.monitor_interval_minutes > 0:
            scheduler = create_scheduler()
            schedule_monitoring(scheduler, monitor, db, settings)
            scheduler.start()

        logger.info("Polymarket Times API ready", env=settings.env, db_enabled=db is not None)
        yield
    finally:
        logger.info("Shutting down...")
        if scheduler and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.debug("Scheduler stopped")
        if db:
            await db.disconnect()
            logger.debug("Database disconnected")


app = FastAPI(
    title="The Polymarket Times",
    description="Prediction-market alerts, newsletter sign-up and market monitoring",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Infrastructure (no prefix)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness check, ok whenever the process is running."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(db: DbDep) -> dict[str, str]:
    """Readiness check: the database answers a trivial query."""
    checks: dict[str, str] = {}
    if db is None:
        checks["db"] = "disabled"
    else:
        try:
            await db.fetchval("SELECT 1")
            checks["db"] = "ok"
        except Exception as e:
            logger.warning("Readiness database check failed", error=str(e))
            checks["db"] = "error"
    status = "ready" if all(v != "error" for v in checks.values()) else "not_ready"
    return {"status": status, **checks}


# Domain API
app.include_router(api_router, prefix="/api")
