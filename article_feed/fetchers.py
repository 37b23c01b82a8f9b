##########################################################################################
#
# Script name: fetchers.py
#
# Description: Conditional feed retrieval with ETag revalidation and a stale-cache fallback.
#
##########################################################################################

import asyncio
import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from .config import (
    ITEMS_TTL_SECONDS,
    MAX_ITEMS_PER_FEED,
    TOKEN_TTL_SECONDS,
    FeedDescriptor,
)
from .errors import ParseFailure, StoreFailure, TransportFailure
from .models import Item
from .normalizer import normalize_entries, parse_feed_body
from .store import KeyValueStore


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


class FetchStatus(enum.Enum):
    FRESH = 'fresh'
    NOT_MODIFIED = 'not-modified'
    STALE = 'stale'
    EMPTY = 'empty'


@dataclass
class FeedResult:
    descriptor: FeedDescriptor
    items: list[Item] = field(default_factory=list)
    status: FetchStatus = FetchStatus.EMPTY
    error: Exception | None = None


def items_key(url: str) -> str:
    return f'items:{url}'


def token_key(url: str) -> str:
    return f'etag:{url}'


# ****************************************************************************************
# Classes
# ****************************************************************************************


class FeedFetcher:
    def __init__(
        self,
        store: KeyValueStore,
        client: httpx.AsyncClient,
        items_ttl: int = ITEMS_TTL_SECONDS,
        token_ttl: int = TOKEN_TTL_SECONDS,
        max_items: int = MAX_ITEMS_PER_FEED,
    ) -> None:
        self.store = store
        self.client = client
        self.items_ttl = items_ttl
        self.token_ttl = token_ttl
        self.max_items = max_items

    async def _read_token(self, url: str) -> str | None:
        try:
            return await self.store.get(token_key(url))
        except StoreFailure as exc:
            log.warning('Revalidation token unavailable for %s: %s', url, exc)
            return None

    async def _read_cached_items(self, url: str) -> list[Item] | None:
        try:
            payload = await self.store.get_json(items_key(url))
        except StoreFailure as exc:
            log.warning('Cached items unavailable for %s: %s', url, exc)
            return None
        if not isinstance(payload, list):
            return None
        try:
            return [Item.from_dict(row) for row in payload if isinstance(row, dict)]
        except (TypeError, ValueError) as exc:
            log.warning('Discarding malformed cached items for %s: %s', url, exc)
            return None

    async def _persist(self, url: str, items: list[Item], token: str | None) -> None:
        try:
            if token:
                await self.store.put(token_key(url), token, ttl=self.token_ttl)
            await self.store.put_json(
                items_key(url),
                [item.to_dict() for item in items],
                ttl=self.items_ttl,
            )
        except StoreFailure as exc:
            log.warning('Failed to persist items for %s: %s', url, exc)

    async def _fallback(self, descriptor: FeedDescriptor, error: Exception) -> FeedResult:
        cached = await self._read_cached_items(descriptor.url)
        if cached is None:
            return FeedResult(descriptor=descriptor, status=FetchStatus.EMPTY, error=error)
        return FeedResult(descriptor=descriptor, items=cached, status=FetchStatus.STALE, error=error)

    async def fetch_feed_result(self, descriptor: FeedDescriptor) -> FeedResult:
        url = descriptor.url
        token = await self._read_token(url)
        headers = {'If-None-Match': token} if token else {}

        try:
            response = await self.client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            return await self._fallback(descriptor, TransportFailure(url, reason=str(exc)))

        if response.status_code == 304:
            cached = await self._read_cached_items(url)
            if cached is None:
                return FeedResult(descriptor=descriptor, status=FetchStatus.NOT_MODIFIED)
            await self._persist(url, cached, token)
            return FeedResult(descriptor=descriptor, items=cached, status=FetchStatus.NOT_MODIFIED)

        if not response.is_success:
            return await self._fallback(descriptor, TransportFailure(url, status=response.status_code))

        try:
            parsed = parse_feed_body(response.content)
        except ParseFailure as exc:
            return await self._fallback(descriptor, exc)

        items = normalize_entries(
            descriptor,
            parsed.entries,
            now=datetime.now(timezone.utc),
            limit=self.max_items,
        )
        log.debug('Fetched %d item(s) from %s (%s).', len(items), url, parsed.shape.value)
        await self._persist(url, items, response.headers.get('ETag'))
        return FeedResult(descriptor=descriptor, items=items, status=FetchStatus.FRESH)

    async def fetch_feed(self, descriptor: FeedDescriptor) -> list[Item]:
        try:
            result = await self.fetch_feed_result(descriptor)
        except Exception as exc:  # noqa: BLE001
            log.exception('Feed fetch failed for %s: %s', descriptor.url, exc)
            result = await self._fallback(descriptor, exc)
        return result.items

    async def fetch_all(self, descriptors: Iterable[FeedDescriptor]) -> list[FeedResult]:
        descriptors = list(descriptors)
        outcomes = await asyncio.gather(
            *(self.fetch_feed_result(descriptor) for descriptor in descriptors),
            return_exceptions=True,
        )
        results: list[FeedResult] = []
        for descriptor, outcome in zip(descriptors, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                outcome = await self._fallback(descriptor, outcome)
            results.append(outcome)
        return results
