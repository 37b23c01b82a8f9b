##########################################################################################
#
# Script name: pipeline.py
#
# Description: Listing, single-article and warm-up entrypoints over fetch, rank and generate.
#
##########################################################################################

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from dateutil import parser as date_parser

from .config import LIST_QUOTA, WARMUP_QUOTA, FeedDescriptor
from .curation import rank_all
from .errors import ItemNotFound
from .fetchers import FeedFetcher, FetchStatus
from .models import Artifact, Item
from .orchestrator import Orchestrator
from .render import excerpt
from .utils import slugify


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def find_item(items: Iterable[Item], slug: str) -> Item | None:
    if not slug:
        return None
    for item in items:
        if slugify(item.title) == slug or item.id == slug or (item.url and item.url.endswith(slug)):
            return item
    return None


def _date_sort_key(item: Item) -> float:
    try:
        return date_parser.isoparse(item.date).timestamp()
    except (ValueError, TypeError, OverflowError):
        return 0.0


def sort_by_date(items: Iterable[Item]) -> list[Item]:
    return sorted(items, key=_date_sort_key, reverse=True)


# ****************************************************************************************
# Classes
# ****************************************************************************************


class FeedPipeline:
    def __init__(
        self,
        descriptors: Sequence[FeedDescriptor],
        fetcher: FeedFetcher,
        orchestrator: Orchestrator,
    ) -> None:
        self.descriptors = list(descriptors)
        self.fetcher = fetcher
        self.orchestrator = orchestrator

    async def collect(self) -> list[list[Item]]:
        results = await self.fetcher.fetch_all(self.descriptors)
        item_lists: list[list[Item]] = []
        for result in results:
            if result.error is not None:
                if result.status is FetchStatus.STALE:
                    log.warning(
                        'Feed %s failed, serving %d cached item(s): %s',
                        result.descriptor.source,
                        len(result.items),
                        result.error,
                    )
                else:
                    log.warning('Feed %s failed with no cached items: %s', result.descriptor.source, result.error)
            item_lists.append(result.items)
        log.debug(
            'Collected %d item(s) from %d feed(s).',
            sum(len(items) for items in item_lists),
            len(item_lists),
        )
        return item_lists

    async def ranked_items(self) -> list[Item]:
        return rank_all(await self.collect())

    async def list_posts(self, quota: int = LIST_QUOTA) -> list[dict[str, Any]]:
        items = await self.ranked_items()
        artifacts = await self.orchestrator.ensure_artifacts(items, quota)
        return [{**artifact.meta.to_dict(), 'excerpt': excerpt(artifact.html)} for artifact in artifacts]

    async def get_post(self, slug: str) -> Artifact:
        item_lists = await self.collect()
        item = find_item((item for items in item_lists for item in items), slug)
        if item is None:
            raise ItemNotFound(slug)
        return await self.orchestrator.ensure_artifact(item)

    async def get_post_html(self, slug: str) -> str:
        artifact = await self.get_post(slug)
        return artifact.html

    async def warm_up(self, quota: int = WARMUP_QUOTA) -> list[Artifact]:
        try:
            item_lists = await self.collect()
            items = sort_by_date(item for items in item_lists for item in items)
            return await self.orchestrator.ensure_artifacts(items, quota)
        except Exception as exc:  # noqa: BLE001
            log.exception('Warm-up run failed: %s', exc)
            return []
