from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from dateutil import parser as date_parser

from .config import GLOBAL_LIMIT, HOT_PATTERN, IA_TAG, MAX_TAGS, SOURCE_WEIGHT, TAG_KEYWORDS
from .models import Item


def auto_tags(item: Item) -> tuple[str, ...]:
    haystack = f"{item.title}\n{item.summary}\n{item.source}".lower()
    tags: list[str] = []
    for tag, patterns in TAG_KEYWORDS.items():
        if any(pattern.search(haystack) for pattern in patterns):
            tags.append(tag)
    if item.topic and item.topic not in tags:
        tags.append(item.topic)
    return tuple(dict.fromkeys(tags))[:MAX_TAGS]


def _hours_since(date_value: str, now: datetime) -> float:
    try:
        published = date_parser.isoparse(date_value)
    except (ValueError, TypeError, OverflowError):
        return 0.0
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return max(0.0, (now - published).total_seconds() / 3600)


def priority_score(item: Item, now: datetime | None = None) -> float:
    if now is None:
        now = datetime.now(timezone.utc)
    hours = _hours_since(item.date, now)
    recency = max(0.0, min(1.0, 1 - hours / 24))
    hot_bonus = 0.2 if HOT_PATTERN.search(item.canonical_text()) else 0.0
    ia_bonus = 0.1 if IA_TAG in item.tags else 0.0
    source_weight = SOURCE_WEIGHT.get(item.source, 1.0)
    return round((0.6 * recency + hot_bonus + ia_bonus) * source_weight, 3)


def dedupe_items(items: Iterable[Item]) -> list[Item]:
    unique: dict[str, Item] = {}
    for item in items:
        key = item.url or item.id
        if not key:
            continue
        existing = unique.get(key)
        if existing is None or item.priority_score > existing.priority_score:
            unique[key] = item
    return list(unique.values())


def rank_all(item_lists: Iterable[Iterable[Item]], limit: int = GLOBAL_LIMIT) -> list[Item]:
    flattened = [item for items in item_lists for item in items]
    ranked = sorted(dedupe_items(flattened), key=lambda item: item.priority_score, reverse=True)
    return ranked[:limit]
