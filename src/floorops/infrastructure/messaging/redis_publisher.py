from __future__ import annotations

import logging
from typing import Callable, Sequence

import redis

from floorops.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger("floorops.events")


class RedisFloorEventPublisher:
    """Sends a unit of work's events through one non-transactional pipeline.

    One round trip per commit, and subscribers see the events in commit order.
    """

    def __init__(self, client_factory: Callable[[], redis.Redis] = get_redis_client) -> None:
        self._client_factory = client_factory

    def publish_batch(self, channel: str, messages: Sequence[str]) -> None:
        if not messages:
            return
        pipeline = self._client_factory().pipeline(transaction=False)
        for message in messages:
            pipeline.publish(channel, message)
        receivers = pipeline.execute()
        logger.debug(
            "events_published",
            extra={
                "channel": channel,
                "event_count": len(messages),
                "subscribers": max(receivers, default=0),
            },
        )
