##########################################################################################
#
# Script name: test_artifacts.py
#
# Description: Article cache key scheme and degraded store behavior.
#
##########################################################################################

import base64
from dataclasses import replace

import pytest

from article_feed.artifacts import ArtifactCache, post_key
from article_feed.errors import StoreFailure
from article_feed.models import Artifact, Item
from article_feed.render import base_meta, fallback_html
from article_feed.store import MemoryStore


ITEM = Item(
    id='guid-1',
    title='Chip export rules tighten',
    url='https://example.com/chips',
    date='2026-03-01T10:00:00.000Z',
    topic='Tech',
    source='Example',
    summary='New limits announced.',
    tags=('Tech',),
    priority_score=0.5,
)


class BrokenStore(MemoryStore):
    async def get(self, key: str) -> str | None:
        raise StoreFailure(key, 'read refused')

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        raise StoreFailure(key, 'write refused')


def test_post_key_encodes_identity_under_version_prefix() -> None:
    key = post_key(ITEM)
    assert key.startswith('post:v1:')
    encoded = key[len('post:v1:'):]
    assert base64.b64decode(encoded).decode('utf-8') == 'https://example.com/chips|guid-1|Chip export rules tighten'


def test_post_key_ignores_date_summary_and_tags() -> None:
    changed = replace(ITEM, date='2020-01-01T00:00:00.000Z', summary='Other', tags=('IA',), priority_score=0.9)
    assert post_key(changed) == post_key(ITEM)
    assert post_key(replace(ITEM, title='Another title')) != post_key(ITEM)


def test_post_key_version_bump_changes_key() -> None:
    assert post_key(ITEM, version='v2') != post_key(ITEM)
    assert post_key(ITEM, version='v2').startswith('post:v2:')


def test_post_key_handles_non_ascii_titles() -> None:
    item = replace(ITEM, title='Récession en zone euro')
    assert post_key(item).startswith('post:v1:')


@pytest.mark.asyncio
async def test_cache_round_trip_and_miss() -> None:
    cache = ArtifactCache(MemoryStore())
    artifact = Artifact(html=fallback_html(ITEM), meta=base_meta(ITEM))
    key = cache.key(ITEM)

    assert await cache.get(key) is None
    assert await cache.put(key, artifact) is True
    assert await cache.get(key) == artifact


@pytest.mark.asyncio
async def test_cache_treats_malformed_payload_as_absent() -> None:
    store = MemoryStore()
    cache = ArtifactCache(store)
    await store.put('post:v1:broken', '{not json')
    await store.put('post:v1:shape', '{"meta": {}}')

    assert await cache.get('post:v1:broken') is None
    assert await cache.get('post:v1:shape') is None


@pytest.mark.asyncio
async def test_cache_swallows_store_failures() -> None:
    cache = ArtifactCache(BrokenStore())
    artifact = Artifact(html=fallback_html(ITEM), meta=base_meta(ITEM))

    assert await cache.get(cache.key(ITEM)) is None
    assert await cache.put(cache.key(ITEM), artifact) is False


@pytest.mark.asyncio
async def test_cache_entries_expire_with_ttl() -> None:
    now = [1000.0]
    store = MemoryStore(clock=lambda: now[0])
    cache = ArtifactCache(store, ttl=60)
    artifact = Artifact(html=fallback_html(ITEM), meta=base_meta(ITEM))
    await cache.put(cache.key(ITEM), artifact)

    now[0] += 59
    assert await cache.get(cache.key(ITEM)) == artifact
    now[0] += 1
    assert await cache.get(cache.key(ITEM)) is None
