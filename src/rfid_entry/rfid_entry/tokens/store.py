from __future__ import annotations

from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """Plain string key/value store with per-key TTL (Redis in production)."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, ttl_seconds: int, *, only_if_absent: bool = False) -> bool:
        """Store value with expiry. With only_if_absent, returns False when the key exists."""
        raise NotImplementedError

    def expire(self, key: str, ttl_seconds: int) -> bool:
        """Reset the TTL; False when the key does not exist."""
        raise NotImplementedError

    def delete(self, *keys: str) -> int:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError
