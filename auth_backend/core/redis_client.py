"""
Redis client factory with lazy initialization.

The pool is sized from ``RedisSettings``. For tests, set ``APP_REDIS__URI``
(or ``redis.uri``) to ``fakeredis://`` to use an in-memory fake.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import redis

from auth_backend.core.config import RedisSettings, get_settings


def create_redis_client(settings: RedisSettings) -> redis.Redis:
    """Build a client over a blocking connection pool; no connection is opened yet."""
    if settings.uri.startswith("fakeredis://"):
        # Lazy import to avoid test-only dependency at runtime
        import fakeredis  # type: ignore

        return fakeredis.FakeRedis(decode_responses=True)
    pool = redis.BlockingConnectionPool.from_url(settings.uri, decode_responses=True, **settings.pool_kwargs())
    return redis.Redis(connection_pool=pool)


@lru_cache(maxsize=1)
def get_redis_client(settings: Optional[RedisSettings] = None) -> redis.Redis:
    return create_redis_client(settings if settings is not None else get_settings().redis)
