from __future__ import annotations

import logging
from functools import lru_cache

import redis

from floorops.infrastructure.settings import redis_url

logger = logging.getLogger("floorops.redis")


@lru_cache(maxsize=8)
def _build_client(url: str, timeout_seconds: float) -> redis.Redis:
    # Events are best-effort, so a dead broker must fail fast rather than hold a request.
    return redis.Redis.from_url(
        url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        health_check_interval=30,
        client_name="floorops",
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    return _build_client(redis_url(), timeout_seconds)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except (redis.RedisError, RuntimeError) as exc:
        logger.warning("redis_unreachable", extra={"error": type(exc).__name__})
        return False
