"""Market monitoring trigger.

Called by an external cron every 5-10 minutes (or manually). Compares
current Polymarket prices with the previous snapshot and stores alerts for
``GET /api/alerts``.
"""

import hmac
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from polytimes.config import Settings
from polytimes.core.dependencies import DbDep, MarketMonitorDep, PolymarketClientDep, SettingsDep
from polytimes.core.exceptions import NoMarketsError
from polytimes.core.logging import get_logger
from polytimes.monitoring.runner import run_monitoring

logger = get_logger(__name__)

router = APIRouter()


def is_authorized(request: Request, settings: Settings) -> bool:
    """Check the cron bearer token; always allowed without a secret or in development."""
    if settings.cron_secret is None or settings.is_development:
        return True
    expected = f"Bearer {settings.cron_secret.get_secret_value()}"
    supplied = request.headers.get("authorization", "")
    return hmac.compare_digest(supplied.encode(), expected.encode())


@router.get("")
async def run_monitor(
    request: Request,
    settings: SettingsDep,
    db: DbDep,
    client: PolymarketClientDep,
    monitor: MarketMonitorDep,
) -> JSONResponse:
    """Run a monitoring pass and summarise the alerts it produced."""
    if not is_authorized(request, settings):
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        result = await run_monitoring(client, monitor, db, settings)
    except NoMarketsError as e:
        return JSONResponse({"success": False, "error": e.message}, status_code=500)
    except Exception as e:
        logger.exception("Market monitoring failed", error=str(e))
        return JSONResponse({"success": False, "error": str(e) or "Unknown error"}, status_code=500)

    return JSONResponse(
        {
            "success": True,
            "alerts_generated": len(result.alerts),
            "alerts": [
                {
                    "headline": alert.headline,
                    "urgency": alert.urgency.value,
                    "market_question": alert.market_question,
                    "price_change": f"{round(abs(alert.price_change) * 100)}pp",
                }
                for alert in result.alerts
            ],
            "reasoning": result.reasoning,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )
