"""Newsletter sign-up endpoint."""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import Response

from polytimes.config import get_settings
from polytimes.core.dependencies import DbDep, SettingsDep
from polytimes.core.exceptions import SubscriptionError
from polytimes.core.logging import get_logger
from polytimes.subscribers.service import SubscribeOutcome, subscribe, validate_email

logger = get_logger(__name__)

router = APIRouter()


def client_ip(request: Request) -> str:
    """Client address, preferring proxy headers over the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return get_remote_address(request) or "unknown"


limiter = Limiter(key_func=client_ip, headers_enabled=True)


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    """429 with Retry-After for callers over the subscribe limit."""
    response = JSONResponse(
        {"error": "Too many requests. Please try again later."},
        status_code=429,
    )
    if isinstance(exc, RateLimitExceeded):
        view_rate_limit = getattr(request.state, "view_rate_limit", None)
        response = limiter._inject_headers(response, view_rate_limit)
    return response


@router.post("")
@limiter.limit(lambda: get_settings().subscribe_rate_limit)
async def subscribe_email(request: Request, db: DbDep, settings: SettingsDep) -> Response:
    """Add an email address to the newsletter.

    Body: ``{"email": "reader@example.com"}``
    """
    try:
        try:
            payload: Any = await request.json()
        except ValueError:
            payload = None
        email = payload.get("email") if isinstance(payload, dict) else None

        error = validate_email(email)
        if error:
            return JSONResponse({"error": error}, status_code=400)

        if db is None:
            return JSONResponse({"error": "Database unavailable"}, status_code=503)

        try:
            outcome = await subscribe(db, email)
        except SubscriptionError as e:
            return JSONResponse({"error": e.message}, status_code=500)

        if outcome is SubscribeOutcome.ALREADY_SUBSCRIBED:
            return JSONResponse({"message": "Already subscribed"}, status_code=200)
        logger.info("Subscriber added")
        return JSONResponse({"message": "Subscribed successfully"}, status_code=200)

    except Exception as e:
        logger.exception("Subscription unexpected error", error=str(e))
        # Details stay in the server log outside development
        if settings.is_development:
            return JSONResponse({"error": f"Server error: {e}"}, status_code=500)
        return JSONResponse(
            {"error": "An unexpected error occurred. Please try again later."},
            status_code=500,
        )
