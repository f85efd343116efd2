"""Top-level API router, mounting all domain routers under /api."""

from fastapi import APIRouter

from polytimes.api.routes import alerts, monitor, subscribe

api_router = APIRouter()
api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
api_router.include_router(subscribe.router, prefix="/subscribe", tags=["subscribe"])
api_router.include_router(monitor.router, prefix="/monitor", tags=["monitor"])
