##########################################################################################
#
# Script name: config.py
#
# Description: Static configuration: feed list, cache TTLs, tag and scoring tables.
#
##########################################################################################

import logging
import os
import re
from dataclasses import dataclass

import yaml


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedDescriptor:
    url: str
    topic: str
    source: str


FEEDS = [
    FeedDescriptor(url='https://openai.com/blog/rss', topic='IA', source='OpenAI Blog'),
    FeedDescriptor(url='https://www.anthropic.com/index.xml', topic='IA', source='Anthropic'),
    FeedDescriptor(url='https://deepmind.google/discover/blog/feed.xml', topic='IA', source='Google DeepMind'),
    FeedDescriptor(url='https://feeds.feedburner.com/TheGradient', topic='IA', source='The Gradient'),
    FeedDescriptor(url='https://www.theverge.com/rss/index.xml', topic='Tech', source='The Verge'),
    FeedDescriptor(url='https://techcrunch.com/feed/', topic='Tech', source='TechCrunch'),
    FeedDescriptor(url='https://news.ycombinator.com/rss', topic='Tech', source='Hacker News'),
    FeedDescriptor(url='https://www.lesswrong.com/feed.xml', topic='Philo', source='LessWrong'),
    FeedDescriptor(url='https://aeon.co/feed.rss', topic='Philo', source='Aeon'),
    FeedDescriptor(url='https://www.reuters.com/world/rss', topic='News', source='Reuters'),
    FeedDescriptor(url='http://feeds.bbci.co.uk/news/rss.xml', topic='News', source='BBC News'),
    FeedDescriptor(url='https://bitcoinmagazine.com/.rss', topic='Crypto', source='Bitcoin Magazine'),
    FeedDescriptor(
        url='https://www.coindesk.com/arc/outboundfeeds/rss/?outputType=xml',
        topic='Crypto',
        source='CoinDesk',
    ),
]

MAX_ITEMS_PER_FEED = 25
GLOBAL_LIMIT = 100
SUMMARY_MAX_CHARS = 1400
MAX_TAGS = 6

ITEMS_TTL_SECONDS = 60 * 30
TOKEN_TTL_SECONDS = 60 * 30
POST_TTL_SECONDS = 60 * 60 * 12
POST_KEY_VERSION = 'v1'

LIST_QUOTA = 6
WARMUP_QUOTA = 4

DEFAULT_OPENAI_MODEL = 'gpt-4o-mini'
DEFAULT_REQUEST_TIMEOUT = 15.0
USER_AGENT = 'article-feed-bot/1.0'

IA_TAG = 'IA'

# Order matters: tags are emitted in table order.
TAG_KEYWORDS = {
    'IA': [
        re.compile(r'(\bAI\b|\bIA\b|artificial intelligence|machine learning|\bLLM\b|GPT|Anthropic|DeepMind)', re.I),
    ],
    'Crypto': [
        re.compile(r'\bbitcoin\b|\bethereum\b|\bBTC\b|\bETH\b|blockchain|on.?chain', re.I),
    ],
    'Macro': [
        re.compile(r'\binflation\b', re.I),
        re.compile(r'\binterest rates?\b', re.I),
        re.compile(r'central bank', re.I),
        re.compile(r'\bECB\b|\bFed\b', re.I),
        re.compile(r'récession|recession', re.I),
        re.compile(r'\bGDP\b|\bPIB\b', re.I),
        re.compile(r'\bgrowth\b|croissance', re.I),
    ],
    'Tech': [
        re.compile(r'startup|software|hardware|semiconductor|nvidia|apple|google|microsoft|security|vulnerability', re.I),
    ],
    'Philo': [
        re.compile(r'ethic|épistémologie|philos|existential|rational', re.I),
    ],
}

HOT_PATTERN = re.compile(
    r'breakthrough|exclusive|leak|security|vulnerability|ban|merger|acquisition|earnings',
    re.I,
)

SOURCE_WEIGHT = {
    'Reuters': 1.2,
    'BBC News': 1.1,
    'AP Top': 1.05,
    'OpenAI Blog': 1.15,
    'Anthropic': 1.1,
    'Google DeepMind': 1.1,
    'Hacker News': 1.0,
    'TechCrunch': 1.0,
    'The Verge': 1.0,
    'LessWrong': 1.0,
    'Aeon': 1.0,
}


@dataclass(frozen=True)
class Settings:
    redis_url: str = ''
    openai_api_key: str = ''
    openai_model: str = DEFAULT_OPENAI_MODEL
    feeds_file: str = ''
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _safe_float(value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def load_settings() -> Settings:
    return Settings(
        redis_url=os.getenv('REDIS_URL') or '',
        openai_api_key=os.getenv('OPENAI_API_KEY') or '',
        openai_model=os.getenv('OPENAI_MODEL') or DEFAULT_OPENAI_MODEL,
        feeds_file=os.getenv('FEEDS_FILE') or '',
        request_timeout=_safe_float(os.getenv('FEED_REQUEST_TIMEOUT'), DEFAULT_REQUEST_TIMEOUT),
    )


def load_feed_descriptors(path: str | None = None) -> list[FeedDescriptor]:
    if not path or not os.path.exists(path):
        if path:
            log.warning('Feed file %s not found, using built-in feed list.', path)
        return list(FEEDS)
    with open(path, 'r', encoding='utf-8') as handle:
        payload = yaml.safe_load(handle) or {}
    entries = payload.get('feeds', [])
    if not isinstance(entries, list):
        raise ValueError('config.feeds must be a list')

    descriptors: list[FeedDescriptor] = []
    seen: set[str] = set()
    for idx, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict) or not (entry.get('url') or '').strip():
            log.warning('Skipping feed entry %s in %s: missing url.', idx, path)
            continue
        url = entry['url'].strip()
        if url in seen:
            continue
        seen.add(url)
        descriptors.append(
            FeedDescriptor(
                url=url,
                topic=str(entry.get('topic') or '').strip(),
                source=str(entry.get('source') or '').strip() or url,
            )
        )
    log.info('Loaded %s feed(s) from %s.', len(descriptors), path)
    return descriptors
