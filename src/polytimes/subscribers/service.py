"""Newsletter subscription.

Subscribing goes through the ``subscribe_email`` database function, which
inserts with ON CONFLICT DO NOTHING under the function owner's privileges.
Databases provisioned before the function existed only have the table, so a
failing function call falls back to a plain insert.
"""

import re
from enum import StrEnum

import asyncpg

from polytimes.core.exceptions import SubscriptionError
from polytimes.core.logging import get_logger
from polytimes.storage.database import Database

logger = get_logger(__name__)

# RFC 5321 path limit
MAX_EMAIL_LENGTH = 254
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class SubscribeOutcome(StrEnum):
    SUBSCRIBED = "subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"


def validate_email(email: object) -> str | None:
    """Return an error message for an unacceptable email, else None."""
    if not email or not isinstance(email, str):
        return "Invalid email address"
    if len(email) > MAX_EMAIL_LENGTH:
        return "Email address too long"
    if not EMAIL_PATTERN.fullmatch(email):
        return "Invalid email address"
    return None


async def subscribe(db: Database, email: str) -> SubscribeOutcome:
    """Add ``email`` to the subscribers table.

    Raises:
        SubscriptionError: If neither the database function nor the direct
            insert could store the subscriber
    """
    try:
        result = await db.call_subscribe_email(email)
    except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        logger.error("Subscription function error, falling back to insert", error=str(e))
    else:
        if result.get("success") is False:
            # The function swallowed a database error; the row may not exist
            logger.error("Subscription function returned an error", error=result.get("error"))
        return SubscribeOutcome.SUBSCRIBED

    try:
        await db.insert_subscriber(email)
    except asyncpg.UniqueViolationError:
        return SubscribeOutcome.ALREADY_SUBSCRIBED
    except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        logger.error("Subscriber insert failed", error=str(e))
        raise SubscriptionError(f"Failed to subscribe: {e}") from e

    return SubscribeOutcome.SUBSCRIBED
