"""Key-value stores for short-lived tokens."""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta

import structlog
from redis.asyncio import Redis

from supportdesk.core.timeutils import utcnow

logger = structlog.get_logger()


class KeyValueStore(ABC):
    """String key-value store with optional per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get a value, or None if missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Set a value, replacing any previous one."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        ...

    async def close(self) -> None:
        return None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store for development and testing."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, datetime | None]] = {}

    async def get(self, key: str) -> str | None:
        if key not in self._data:
            return None

        value, expiry = self._data[key]
        if expiry is not None and utcnow() > expiry:
            del self._data[key]
            return None

        return value

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        expiry = utcnow() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        self._data[key] = (value, expiry)

    async def delete(self, key: str) -> bool:
        if key in self._data:
            del self._data[key]
            return True
        return False

    async def health_check(self) -> bool:
        return True


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed store; expiry is delegated to Redis."""

    def __init__(self, url: str | None = None, client: Redis | None = None) -> None:
        if client is None:
            if not url:
                raise ValueError("Either url or client is required")
            client = Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        self._client = client

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> bool:
        return bool(await self._client.delete(key))

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()
