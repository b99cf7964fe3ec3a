from __future__ import annotations

import os

import redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    return os.environ.get("PAIRS_REDIS_URL") or os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)


def create_redis() -> redis.Redis:
    # Publishing snapshots runs inside timer callbacks on the event loop; keep a
    # slow Redis from stalling the game for long.
    return redis.Redis.from_url(get_redis_url(), decode_responses=True, socket_timeout=1.0)
