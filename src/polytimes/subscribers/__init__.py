"""Newsletter subscribers."""

from polytimes.subscribers.service import SubscribeOutcome, subscribe, validate_email

__all__ = ["SubscribeOutcome", "subscribe", "validate_email"]
