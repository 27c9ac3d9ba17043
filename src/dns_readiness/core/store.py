"""Store of the latest probe outcome per hostname, on Redis or in memory."""

# pylint: disable=missing-function-docstring

import json
import logging
from typing import Optional, Protocol

import redis.asyncio as aioredis
from aiocache import SimpleMemoryCache

from dns_readiness.core.models import ProbeOutcome, outcome_to_dict

logger = logging.getLogger(__name__)

KEY_PREFIX = "outcome:"


class StoreBackend(Protocol):
    """Protocol for outcome store backends."""

    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, value: str, ttl: int) -> None: ...
    async def delete(self, key: str) -> bool: ...


class RedisBackend:
    """Redis store backend."""

    def __init__(self, url: str):
        self._client = aioredis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
        )

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._client.set(key, value, ex=ttl)

    async def delete(self, key: str) -> bool:
        return await self._client.delete(key) > 0


class MemoryBackend:
    """In-memory store backend using aiocache."""

    def __init__(self):
        self._cache = SimpleMemoryCache()

    async def get(self, key: str) -> Optional[str]:
        return await self._cache.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._cache.set(key, value, ttl=ttl)

    async def delete(self, key: str) -> bool:
        return bool(await self._cache.delete(key))


class OutcomeStore:
    """Records the last outcome for each probed hostname."""

    def __init__(self, backend: Optional[StoreBackend] = None, ttl: int = 3600):
        self._backend = backend
        self.ttl = ttl

    def configure(self, use_redis: bool = False, redis_url: Optional[str] = None):
        """Configure the store backend."""
        if use_redis and redis_url:
            self._backend = RedisBackend(redis_url)
        else:
            self._backend = MemoryBackend()

    @property
    def uses_redis(self) -> bool:
        return isinstance(self._backend, RedisBackend)

    def _get_backend(self) -> StoreBackend:
        """Get the backend, initializing with memory if needed."""
        if self._backend is None:
            self._backend = MemoryBackend()

        return self._backend

    async def record(self, hostname: str, outcome: ProbeOutcome, elapsed: float) -> dict:
        """Store the outcome for hostname and return the stored document."""
        doc = outcome_to_dict(hostname, outcome)
        doc["elapsed"] = round(elapsed, 3)

        await self._get_backend().set(KEY_PREFIX + hostname, json.dumps(doc), self.ttl)
        logger.info(f"{hostname} outcome recorded (ready={doc['ready']})")

        return doc

    async def latest(self, hostname: str) -> Optional[dict]:
        """Return the last stored outcome for hostname, if any."""
        if raw := await self._get_backend().get(KEY_PREFIX + hostname):
            return json.loads(raw)

        return None

    async def forget(self, hostname: str) -> bool:
        """Drop the stored outcome. Returns True if one existed."""
        deleted = await self._get_backend().delete(KEY_PREFIX + hostname)

        if deleted:
            logger.info(f"{hostname} outcome removed")

        return deleted


# Default store instance
_store: Optional[OutcomeStore] = None


def get_store() -> OutcomeStore:
    """Get or create the default outcome store."""
    global _store

    if _store is None:
        _store = OutcomeStore()

    return _store


def init_store(
    use_redis: bool = False, redis_url: Optional[str] = None, ttl: int = 3600
) -> None:
    """Initialize the store with settings. Call at app startup."""
    store = get_store()
    store.ttl = ttl
    store.configure(use_redis, redis_url)


def set_store(store: OutcomeStore) -> None:
    """Set a custom store (useful for testing)."""
    global _store

    _store = store


def reset_store() -> None:
    """Reset the store (useful for testing)."""
    global _store

    _store = None
