from __future__ import annotations

import redis

from balloon.config import Settings, load_settings


def create_redis(settings: Settings | None = None) -> redis.Redis:
    cfg = settings or load_settings()
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(cfg.redis_url, decode_responses=True)
