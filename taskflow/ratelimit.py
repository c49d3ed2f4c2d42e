from __future__ import annotations

import hashlib
import logging

import redis
from fastapi import HTTPException, Request

from taskflow.config import settings
from taskflow.redis_client import redis_client

logger = logging.getLogger(__name__)

def _hash(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()[:24]

def _caller_key(request: Request) -> str:
    # per bearer token when present, otherwise per client ip
    auth = request.headers.get("authorization")
    if auth:
        return _hash(auth.strip())
    ip = (request.client.host if request.client else "unknown").strip()
    return _hash(ip)

# fixed-window limiter using redis INCR + EXPIRE
def rate_limit(name: str, limit_per_window: int, window_seconds: int = 60):
    def _dep(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return

        key = f"rl:{name}:{_caller_key(request)}"

        try:
            pipe = redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, window_seconds, nx=True)
            count, _ = pipe.execute()
        except redis.RedisError as e:
            # fail-open if redis is down
            logger.warning("rate limiter unavailable for %s: %s", name, e)
            return

        if int(count) > int(limit_per_window):
            raise HTTPException(status_code=429, detail="rate_limited")

    return _dep

def write_limit(name: str):
    return rate_limit(name, limit_per_window=settings.rate_limit_writes_per_min, window_seconds=60)
