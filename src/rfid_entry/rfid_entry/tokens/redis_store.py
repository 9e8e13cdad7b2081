from __future__ import annotations

import logging
from typing import Optional

import redis

from ..core.exceptions import StoreUnavailableError
from .store import KeyValueStore

logger = logging.getLogger(__name__)


def build_redis_client(redis_config: dict) -> redis.Redis:
    """Create a client with its own connection pool. Connections are opened lazily."""
    return redis.Redis(
        host=str(redis_config.get("host", "localhost")),
        port=int(redis_config.get("port", 6379)),
        password=redis_config.get("password") or None,
        db=int(redis_config.get("db", 0)),
        socket_timeout=float(redis_config.get("socket_timeout", 2.0)),
        socket_connect_timeout=float(redis_config.get("socket_timeout", 2.0)),
        decode_responses=True,
    )


class RedisKeyValueStore(KeyValueStore):
    def __init__(self, client: redis.Redis):
        self._redis = client

    def get(self, key: str) -> Optional[str]:
        try:
            return self._redis.get(key)
        except redis.RedisError as e:
            raise StoreUnavailableError(f"redis GET failed: {e}") from e

    def set(self, key: str, value: str, ttl_seconds: int, *, only_if_absent: bool = False) -> bool:
        try:
            return bool(self._redis.set(key, value, ex=int(ttl_seconds), nx=only_if_absent))
        except redis.RedisError as e:
            raise StoreUnavailableError(f"redis SET failed: {e}") from e

    def expire(self, key: str, ttl_seconds: int) -> bool:
        try:
            return bool(self._redis.expire(key, int(ttl_seconds)))
        except redis.RedisError as e:
            raise StoreUnavailableError(f"redis EXPIRE failed: {e}") from e

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self._redis.delete(*keys))
        except redis.RedisError as e:
            raise StoreUnavailableError(f"redis DEL failed: {e}") from e

    def ping(self) -> bool:
        try:
            return bool(self._redis.ping())
        except redis.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False
