"""Recent market alerts.

The endpoint never fails: a missing database, a failing query or any other
error all produce ``{"alerts": []}`` with status 200. Callers cannot tell
"no alerts" from "backend down"; front-end widgets rely on that.
"""

from datetime import UTC, datetime, timedelta

import asyncpg
from fastapi import APIRouter, Response

from polytimes.alerts.models import AlertsResponse
from polytimes.core.dependencies import DbDep, SettingsDep
from polytimes.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def cache_control(revalidate_seconds: int) -> str:
    return f"public, s-maxage={revalidate_seconds}, stale-while-revalidate={revalidate_seconds}"


@router.get("", response_model=AlertsResponse)
async def get_alerts(response: Response, db: DbDep, settings: SettingsDep) -> AlertsResponse:
    """Alerts from the last two hours, newest first, at most ten."""
    response.headers["Cache-Control"] = cache_control(settings.alerts_revalidate_seconds)

    if db is None:
        return AlertsResponse(alerts=[])

    try:
        since = datetime.now(UTC) - timedelta(hours=settings.alerts_window_hours)
        alerts = await db.fetch_recent_alerts(since, settings.alerts_limit)
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.error("Error fetching alerts", error=str(e))
        return AlertsResponse(alerts=[])
    except Exception as e:
        logger.exception("Error in alerts route", error=str(e))
        return AlertsResponse(alerts=[])

    return AlertsResponse(alerts=(alerts or [])[: settings.alerts_limit])
