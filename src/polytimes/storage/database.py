"""PostgreSQL database connection using raw asyncpg.

The database is the hosted Postgres behind the site (Supabase). Tables are
created by ``sql/schema.sql``; this module only reads and writes rows.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast

import asyncpg
import orjson
from pydantic import ValidationError

from polytimes.alerts.models import MarketAlert
from polytimes.core.exceptions import DatabaseConnectionError
from polytimes.core.logging import get_logger

if TYPE_CHECKING:
    from datetime import datetime

    from polytimes.monitoring.models import NewAlert

logger = get_logger(__name__)


class Database:
    """Async PostgreSQL database wrapper using asyncpg."""

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 5) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool: asyncpg.Pool[asyncpg.Record] | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        # Accept SQLAlchemy-style DSNs
        dsn = self._dsn.replace("postgresql+asyncpg://", "postgresql://")

        # Supabase's transaction pooler (pgbouncer) does not support prepared statements
        self._pool = await asyncpg.create_pool(
            dsn,
            min_size=self._min_size,
            max_size=self._max_size,
            statement_cache_size=0,
        )
        logger.debug("Database pool created", min_size=self._min_size, max_size=self._max_size)

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.debug("Database pool closed")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool."""
        if not self._pool:
            raise RuntimeError("Database not connected. Call connect() first.")
        async with self._pool.acquire() as conn:
            yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query and return status."""
        async with self.acquire() as conn:
            result = await conn.execute(query, *args)
            return cast(str, result)

    async def executemany(self, query: str, args: list[tuple[Any, ...]]) -> None:
        """Execute a query once per argument tuple."""
        async with self.acquire() as conn:
            await conn.executemany(query, args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """Fetch multiple rows."""
        async with self.acquire() as conn:
            result = await conn.fetch(query, *args)
            return list(result)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """Fetch a single row."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Fetch a single value."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    # -------------------------------------------------------------------------
    # Market alerts
    # -------------------------------------------------------------------------

    async def fetch_recent_alerts(self, since: datetime, limit: int) -> list[MarketAlert]:
        """Fetch alerts created at or after ``since``, newest first.

        Args:
            since: Inclusive lower bound on created_at
            limit: Maximum number of alerts

        Returns:
            Alerts ordered by created_at descending. Rows that do not fit
            ``MarketAlert`` (e.g. urgency values written by older monitors)
            are logged and left out.
        """
        query = """
            SELECT id, market_id, alert_type, urgency, headline, price_change,
                   old_price, new_price, reasoning, market_data, created_at
            FROM market_alerts
            WHERE created_at >= $1
            ORDER BY created_at DESC
            LIMIT $2
        """
        rows = await self.fetch(query, since, limit)
        alerts: list[MarketAlert] = []
        for row in rows:
            try:
                alerts.append(_alert_from_row(row))
            except (ValidationError, orjson.JSONDecodeError) as e:
                logger.warning(
                    "Skipping malformed alert row",
                    alert_id=str(row.get("id")),
                    error=str(e),
                )
        return alerts

    async def insert_alerts(self, alerts: list[NewAlert], created_at: datetime) -> int:
        """Insert monitor alerts into market_alerts.

        Returns:
            Number of alerts inserted
        """
        if not alerts:
            return 0

        query = """
            INSERT INTO market_alerts (
                market_id, alert_type, urgency, headline, price_change,
                old_price, new_price, reasoning, market_data, created_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb, $10)
        """
        await self.executemany(
            query,
            [
                (
                    alert.market_id,
                    str(alert.alert_type),
                    alert.urgency.value,
                    alert.headline,
                    alert.price_change,
                    alert.old_price,
                    alert.new_price,
                    alert.reasoning,
                    orjson.dumps(alert.market_data).decode("utf-8"),
                    created_at,
                )
                for alert in alerts
            ],
        )
        logger.debug("Market alerts inserted", count=len(alerts))
        return len(alerts)

    # -------------------------------------------------------------------------
    # Market snapshots
    # -------------------------------------------------------------------------

    async def get_latest_snapshot(self) -> dict[str, float] | None:
        """Get the price snapshot stored by the most recent monitor pass."""
        raw = await self.fetchval(
            "SELECT data FROM market_snapshots ORDER BY created_at DESC LIMIT 1"
        )
        if raw is None:
            return None
        data = _decode_json(raw)
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed market snapshot", type=type(data).__name__)
            return None
        return {str(k): float(v) for k, v in data.items()}

    async def insert_snapshot(self, snapshot: dict[str, float], created_at: datetime) -> None:
        """Store a market_id -> yes price snapshot."""
        await self.execute(
            "INSERT INTO market_snapshots (data, created_at) VALUES ($1::jsonb, $2)",
            orjson.dumps(snapshot).decode("utf-8"),
            created_at,
        )
        logger.debug("Market snapshot inserted", markets=len(snapshot))

    async def delete_snapshots_before(self, cutoff: datetime) -> int:
        """Delete snapshots older than ``cutoff``.

        Returns:
            Number of snapshots deleted
        """
        status = await self.execute("DELETE FROM market_snapshots WHERE created_at < $1", cutoff)
        # Status looks like "DELETE 3"
        try:
            deleted = int(status.split()[-1])
        except (ValueError, IndexError):
            deleted = 0
        if deleted:
            logger.debug("Old market snapshots deleted", count=deleted)
        return deleted

    # -------------------------------------------------------------------------
    # Newsletter subscribers
    # -------------------------------------------------------------------------

    async def call_subscribe_email(self, email: str) -> dict[str, Any]:
        """Call the ``subscribe_email`` database function.

        Returns:
            The function's JSON result, e.g. ``{"success": true}``
        """
        raw = await self.fetchval("SELECT subscribe_email($1)", email)
        result = _decode_json(raw) if raw is not None else {}
        return result if isinstance(result, dict) else {"success": bool(result)}

    async def insert_subscriber(self, email: str) -> None:
        """Insert a subscriber row directly.

        Raises:
            asyncpg.UniqueViolationError: If the email is already subscribed
        """
        await self.execute("INSERT INTO subscribers (email) VALUES ($1)", email)
        logger.debug("Subscriber inserted")


def _decode_json(raw: Any) -> Any:
    # asyncpg returns json/jsonb as text unless a type codec is registered
    if isinstance(raw, (str, bytes)):
        return orjson.loads(raw)
    return raw


def _alert_from_row(row: asyncpg.Record | dict[str, Any]) -> MarketAlert:
    data = dict(row)
    data["market_data"] = _decode_json(data.get("market_data"))
    return MarketAlert.model_validate(data)


def is_valid_dsn(dsn: str) -> bool:
    """Reject DSNs with stray quotes, whitespace or a non-Postgres scheme."""
    if any(c in dsn for c in ('"', "'", " ")):
        return False
    return dsn.startswith(("postgres://", "postgresql://", "postgresql+asyncpg://"))


async def init_database(dsn: str, min_size: int = 1, max_size: int = 5) -> Database:
    """Create and connect a Database.

    Raises:
        DatabaseConnectionError: If the DSN is malformed or the pool cannot be created
    """
    if not is_valid_dsn(dsn):
        raise DatabaseConnectionError("Malformed DATABASE_URL")
    db = Database(dsn, min_size=min_size, max_size=max_size)
    try:
        await db.connect()
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e
    logger.info("Database connected")
    return db
