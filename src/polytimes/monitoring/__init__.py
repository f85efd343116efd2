"""Market monitoring: price swing detection and breaking-news alerts."""

from polytimes.monitoring.models import MonitorResult, NewAlert, PriceMove
from polytimes.monitoring.monitor import MarketMonitor, detect_moves
from polytimes.monitoring.runner import run_monitoring

__all__ = [
    "MarketMonitor",
    "MonitorResult",
    "NewAlert",
    "PriceMove",
    "detect_moves",
    "run_monitoring",
]
