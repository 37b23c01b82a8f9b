##########################################################################################
#
# Script name: normalizer.py
#
# Description: Converts parsed RSS / Atom entries into canonical Item records.
#
##########################################################################################

import enum
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

import feedparser
from dateutil import parser as date_parser

from .config import MAX_ITEMS_PER_FEED, SUMMARY_MAX_CHARS, FeedDescriptor
from .curation import auto_tags, priority_score
from .errors import ParseFailure
from .models import Item
from .utils import strip_html, to_iso


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

DATE_FIELDS = ('pubDate', 'published', 'updated', 'dc_date')
SUMMARY_FIELDS = ('description', 'content', 'summary')
TEXT_NODE_KEYS = ('#text', 'value')
DATE_DEFAULT_PAIR = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class FeedShape(enum.Enum):
    RSS = 'rss'
    ATOM = 'atom'
    BARE_CHANNEL = 'channel'
    UNKNOWN = 'unknown'


@dataclass
class ParsedFeed:
    shape: FeedShape
    entries: list[Mapping[str, Any]] = field(default_factory=list)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def detect_shape(parsed: Mapping[str, Any]) -> FeedShape:
    version = parsed.get('version') or ''
    if version.startswith('atom'):
        return FeedShape.ATOM
    if version.startswith('rss'):
        return FeedShape.RSS
    if parsed.get('entries'):
        return FeedShape.BARE_CHANNEL
    return FeedShape.UNKNOWN


def parse_feed_body(body: bytes | str) -> ParsedFeed:
    parsed = feedparser.parse(body)
    entries = list(parsed.get('entries') or [])
    if parsed.get('bozo') and not entries:
        raise ParseFailure(f'Malformed feed body: {parsed.get("bozo_exception")}')
    return ParsedFeed(shape=detect_shape(parsed), entries=entries)


def _text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        for key in TEXT_NODE_KEYS:
            if key in value:
                return _text(value[key])
        return ''
    if isinstance(value, (list, tuple)):
        for child in value:
            found = _text(child)
            if found:
                return found
        return ''
    return str(value).strip()


def _link_attr(link: Any, name: str) -> str:
    if not isinstance(link, Mapping):
        return ''
    return _text(link.get(name) or link.get(f'@{name}'))


def _pick_from_links(links: Iterable[Any]) -> str:
    links = list(links)
    for link in links:
        if _link_attr(link, 'rel') == 'alternate' and _link_attr(link, 'href'):
            return _link_attr(link, 'href')
    for link in links:
        href = _link_attr(link, 'href')
        if href:
            return href
    return ''


def resolve_link(raw: Mapping[str, Any]) -> str:
    link = raw.get('link')
    if isinstance(link, str):
        return link.strip()
    if isinstance(link, (list, tuple)):
        candidate = _pick_from_links(link)
        if candidate:
            return candidate
    if isinstance(link, Mapping) and _link_attr(link, 'href'):
        return _link_attr(link, 'href')

    links = raw.get('links')
    if isinstance(links, (list, tuple)):
        candidate = _pick_from_links(links)
        if candidate:
            return candidate

    content = raw.get('content')
    if isinstance(content, (list, tuple)):
        content = content[0] if content else None
    if isinstance(content, Mapping):
        return _link_attr(content, 'src')
    return ''


def resolve_guid(raw: Mapping[str, Any]) -> str:
    return _text(raw.get('guid')) or _text(raw.get('id'))


def resolve_summary(raw: Mapping[str, Any], limit: int = SUMMARY_MAX_CHARS) -> str:
    for name in SUMMARY_FIELDS:
        summary = strip_html(_text(raw.get(name)), limit=limit)
        if summary:
            return summary
    return ''


def _parse_timestamp(value: str) -> datetime | None:
    # Two different defaults expose strings that carry no calendar date (e.g. "Sunday").
    try:
        parsed = date_parser.parse(value, default=DATE_DEFAULT_PAIR[0])
        if parsed.date() != date_parser.parse(value, default=DATE_DEFAULT_PAIR[1]).date():
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, TypeError, OverflowError):
        return None


def ensure_date(raw: Mapping[str, Any], now: datetime | None = None) -> str:
    for name in DATE_FIELDS:
        candidate = raw.get(name)
        if not isinstance(candidate, str) or not candidate.strip():
            continue
        parsed = _parse_timestamp(candidate)
        if parsed is not None:
            return to_iso(parsed)
    return to_iso(now or datetime.now(timezone.utc))


def normalize_item(
    descriptor: FeedDescriptor,
    raw: Mapping[str, Any],
    now: datetime | None = None,
) -> Item:
    if now is None:
        now = datetime.now(timezone.utc)
    title = _text(raw.get('title'))
    url = resolve_link(raw)
    date = ensure_date(raw, now=now)
    item = Item(
        id=resolve_guid(raw) or url or f'{title}|{date}',
        title=title,
        url=url,
        date=date,
        topic=descriptor.topic,
        source=descriptor.source,
        summary=resolve_summary(raw),
    )
    item = replace(item, tags=auto_tags(item))
    return replace(item, priority_score=priority_score(item, now=now))


def normalize_entries(
    descriptor: FeedDescriptor,
    entries: Iterable[Mapping[str, Any]],
    now: datetime | None = None,
    limit: int = MAX_ITEMS_PER_FEED,
) -> list[Item]:
    items: list[Item] = []
    for idx, raw in enumerate(entries):
        if idx >= limit:
            break
        if not _text(raw.get('title')):
            log.debug('Dropping untitled entry %s from %s', idx, descriptor.url)
            continue
        items.append(normalize_item(descriptor, raw, now=now))
    return items
