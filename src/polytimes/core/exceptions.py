"""Custom exceptions for The Polymarket Times backend."""


class PolyTimesError(Exception):
    """Base exception for all polytimes errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


# Storage errors
class StorageError(PolyTimesError):
    """Base error for storage layer."""


class DatabaseConnectionError(StorageError):
    """Failed to connect to database."""


# Market errors
class MarketError(PolyTimesError):
    """Base error for market layer."""


class PolymarketConnectionError(MarketError):
    """Failed to reach the Polymarket API."""


# Newsletter errors
class SubscriptionError(PolyTimesError):
    """Subscriber could not be stored."""


# Monitoring errors
class MonitoringError(PolyTimesError):
    """Base error for market monitoring."""


class NoMarketsError(MonitoringError):
    """Polymarket returned no usable markets."""
