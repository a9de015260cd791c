"""Event publisher: announces appended events on a Redis pub/sub channel."""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from bookexchange.models import EventEnvelope

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "book-events"


class PublishError(Exception):
    def __init__(self, event_type: str, reason: str) -> None:
        self.event_type = event_type
        super().__init__(f"Failed to publish {event_type}: {reason}")


class EventPublisher:
    """Fire-and-forget broadcast of events to out-of-process subscribers."""

    def __init__(self, redis: Redis, channel: str = DEFAULT_CHANNEL) -> None:
        self._redis = redis
        self.channel = channel

    async def publish(self, envelope: EventEnvelope) -> int:
        """Publish the envelope's JSON form. Returns the number of receivers.

        Raises PublishError if the broadcast is rejected.
        """
        try:
            receivers = await self._redis.publish(self.channel, envelope.to_wire())
        except RedisError as e:
            logger.error("Failed to publish %s to %r: %s", envelope.event_type, self.channel, e)
            raise PublishError(envelope.event_type, str(e)) from e
        logger.info(
            "Published %s to %r (%d receivers)", envelope.event_type, self.channel, receivers
        )
        return receivers
