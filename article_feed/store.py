##########################################################################################
#
# Script name: store.py
#
# Description: Key-value store backends shared by the feed, token and article caches.
#
##########################################################################################

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from .config import Settings
from .errors import StoreFailure


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


# ****************************************************************************************
# Classes
# ****************************************************************************************


class KeyValueStore(ABC):
    '''
    Flat namespace with per-key TTL. Backends raise StoreFailure on any I/O error.
    '''

    @abstractmethod
    async def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        ...

    async def get_json(self, key: str) -> Any:
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StoreFailure(key, f'invalid JSON payload ({exc})') from exc

    async def put_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self.put(key, json.dumps(value, ensure_ascii=True), ttl=ttl)

    async def close(self) -> None:
        return None


class MemoryStore(KeyValueStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    async def get(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._expired(expires_at):
            del self._data[key]
            return None
        return value

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        self._data[key] = (value, expires_at)

    def keys(self, prefix: str = '') -> list[str]:
        return [
            key
            for key, (_, expires_at) in self._data.items()
            if key.startswith(prefix) and not self._expired(expires_at)
        ]


class RedisStore(KeyValueStore):
    def __init__(self, url: str, client: redis_asyncio.Redis | None = None) -> None:
        self.url = url
        self._client = client or redis_asyncio.Redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            raise StoreFailure(key, str(exc)) from exc

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            await self._client.set(key, value, ex=ttl or None)
        except RedisError as exc:
            raise StoreFailure(key, str(exc)) from exc

    async def close(self) -> None:
        await self._client.aclose()


# ****************************************************************************************
# Functions
# ****************************************************************************************


def open_store(settings: Settings) -> KeyValueStore:
    if settings.redis_url:
        log.debug('Using Redis store at %s', settings.redis_url)
        return RedisStore(settings.redis_url)
    log.warning('REDIS_URL is not set. Using an in-process store; cache will not survive restarts.')
    return MemoryStore()
