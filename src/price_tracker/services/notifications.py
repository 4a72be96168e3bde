"""Outbound collaborators of the jobs: user notifications and price change events.

Delivery is best-effort. Callers log failures and move on; nothing here
rolls back a price write or an alert transition.
"""
import logging
from typing import Protocol

from price_tracker.schemas import PriceChangeEvent

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Delivers one message to one user."""

    async def send(self, user_id: int, title: str, body: str, correlation_id: str) -> bool:
        """Returns True when the message was handed to the channel."""
        ...


class ChangeEventPublisher(Protocol):
    """Publishes the aggregated per-user price change event."""

    async def publish(self, event: PriceChangeEvent) -> None: ...


class LoggingNotifier:
    """Notifier that writes messages to the log instead of a push channel."""

    async def send(self, user_id: int, title: str, body: str, correlation_id: str) -> bool:
        logger.info("Notification for user %s [%s]: %s | %s", user_id, correlation_id, title, body)
        return True


class LoggingEventPublisher:
    """Publisher that logs each event on the user's ``price-updates:{user_id}`` channel."""

    async def publish(self, event: PriceChangeEvent) -> None:
        logger.info(
            "price-update on price-updates:%s: %d asset(s) %s",
            event.user_id,
            len(event.updates),
            ", ".join(f"{u.symbol}={u.new_price}" for u in event.updates),
        )
