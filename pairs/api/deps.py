from __future__ import annotations

from functools import lru_cache

import redis

from pairs.infra.redis_client import create_redis
from pairs.session_store import SessionRegistry
from pairs.websocket_hub import hub


@lru_cache(maxsize=1)
def _shared_redis() -> redis.Redis:
    return create_redis()


def get_redis() -> redis.Redis:
    # Sessions keep publishing from timer callbacks after the request ends, so the
    # client is process-wide rather than per request.
    return _shared_redis()


@lru_cache(maxsize=1)
def _shared_registry() -> SessionRegistry:
    registry = SessionRegistry()
    registry.subscribe(hub.notify)
    return registry


def get_registry() -> SessionRegistry:
    return _shared_registry()
