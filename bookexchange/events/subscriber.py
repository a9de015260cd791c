"""Notification subscriber: listens on the events channel for newly added books."""

import logging
from collections.abc import Awaitable, Callable

from pydantic import ValidationError
from redis.asyncio import Redis

from bookexchange.events.publisher import DEFAULT_CHANNEL
from bookexchange.models import BookAddedPayload, EventEnvelope

logger = logging.getLogger(__name__)

NotifyCallback = Callable[[BookAddedPayload], Awaitable[None]]


async def log_new_book(book: BookAddedPayload) -> None:
    """Default notification: write the new book to the log."""
    logger.info("New book added: %s", book.model_dump(by_alias=True))


class NotificationSubscriber:
    """Consumes BookAdded events and hands each one to a notify callback."""

    def __init__(
        self,
        redis: Redis,
        channel: str = DEFAULT_CHANNEL,
        notify: NotifyCallback = log_new_book,
    ) -> None:
        self._redis = redis
        self.channel = channel
        self._notify = notify

    async def handle_message(self, raw: str | bytes) -> EventEnvelope | None:
        """Decode one channel message. Returns the envelope if it was a BookAdded.

        Malformed messages and failed notifications are logged and dropped; other
        event types are ignored.
        """
        try:
            envelope = EventEnvelope.model_validate_json(raw)
        except ValidationError:
            logger.warning("Dropping malformed message on %r: %r", self.channel, raw)
            return None

        if envelope.event_type != "BookAdded":
            return None

        try:
            book = envelope.typed_payload()
        except ValidationError:
            logger.warning("Dropping BookAdded with malformed data: %r", envelope.data)
            return None

        try:
            await self._notify(book)
        except Exception:
            logger.exception("Notification failed for book %s", book.book_id)
            return None
        return envelope

    async def run(self) -> None:
        """Listen until cancelled."""
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self.channel)
        logger.info("Subscribed to %r", self.channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self.handle_message(message["data"])
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
