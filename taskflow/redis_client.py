import logging

import redis

from taskflow.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.Redis.from_url(
    settings.redis_url,
    decode_responses=True,
    socket_connect_timeout=2,
    socket_timeout=2,
)

def redis_ping() -> str | None:
    # None when healthy, else the error class name
    try:
        redis_client.ping()
    except redis.RedisError as e:
        logger.warning("redis ping failed: %s", e.__class__.__name__)
        return e.__class__.__name__
    return None
