##########################################################################################
#
# Script name: main.py
#
# Description: CLI entrypoint for listing, serving and pre-generating feed articles.
#
##########################################################################################

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from datetime import date

import httpx

from .artifacts import ArtifactCache
from .config import LIST_QUOTA, USER_AGENT, WARMUP_QUOTA, Settings, load_feed_descriptors, load_settings
from .errors import GenerationFailure, ItemNotFound
from .fetchers import FeedFetcher
from .generator import ArticleGenerator
from .orchestrator import Orchestrator
from .pipeline import FeedPipeline
from .store import KeyValueStore, open_store


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(os.path.basename(sys.argv[0]))
log.setLevel(logging.DEBUG)
log.propagate = False
formatter = logging.Formatter(
    '%(asctime)-15s [%(funcName)25s:%(lineno)-5s] %(levelname)-8s %(message)s'
)

# File handler for logging
fh = logging.FileHandler('article_feed.log', mode='w')
fh.setLevel(logging.DEBUG)
fh.setFormatter(formatter)
if not any(isinstance(handler, logging.FileHandler) for handler in log.handlers):
    log.addHandler(fh)

root_log = logging.getLogger()
root_log.setLevel(logging.DEBUG)
if not any(isinstance(handler, logging.FileHandler) for handler in root_log.handlers):
    root_log.addHandler(fh)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def build_pipeline(settings: Settings, store: KeyValueStore, client: httpx.AsyncClient) -> FeedPipeline:
    descriptors = load_feed_descriptors(settings.feeds_file)
    fetcher = FeedFetcher(store, client)
    generator = ArticleGenerator(api_key=settings.openai_api_key, model=settings.openai_model)
    if generator.client is None:
        log.warning('OPENAI_API_KEY is not set. Articles will be summary-only.')
    orchestrator = Orchestrator(ArtifactCache(store), generator)
    return FeedPipeline(descriptors, fetcher, orchestrator)


async def run_command(args: argparse.Namespace, settings: Settings) -> int:
    store = open_store(settings)
    try:
        async with httpx.AsyncClient(
            timeout=settings.request_timeout,
            headers={'User-Agent': USER_AGENT},
            follow_redirects=True,
        ) as client:
            pipeline = build_pipeline(settings, store, client)
            if args.command == 'list':
                posts = await pipeline.list_posts(quota=args.quota)
                print(json.dumps(posts, ensure_ascii=False, indent=2))
                log.info('Listed %d post(s).', len(posts))
            elif args.command == 'post':
                try:
                    html = await pipeline.get_post_html(args.slug)
                except ItemNotFound as exc:
                    log.error('%s', exc)
                    return 1
                except GenerationFailure as exc:
                    log.error('On-demand generation failed for %s: %s', args.slug, exc)
                    return 1
                print(html)
            elif args.command == 'warm':
                artifacts = await pipeline.warm_up(quota=args.quota)
                log.info('Warm-up finished with %d cached article(s).', len(artifacts))
    finally:
        await store.close()
    return 0


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************


def handle_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Ingest RSS/Atom feeds and serve AI-generated articles.')
    parser.add_argument(
        '--feeds',
        default=None,
        help='Path to a YAML feed list (defaults to FEEDS_FILE or the built-in list).',
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output to stdout.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Minimal stdout.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    list_parser = subparsers.add_parser('list', help='Print the ranked article listing as JSON.')
    list_parser.add_argument('--quota', type=int, default=LIST_QUOTA)

    post_parser = subparsers.add_parser('post', help='Print one article as HTML.')
    post_parser.add_argument('slug', help='Article slug, item id or URL suffix.')

    warm_parser = subparsers.add_parser('warm', help='Pre-generate articles for the newest items.')
    warm_parser.add_argument('--quota', type=int, default=WARMUP_QUOTA)

    args = parser.parse_args()

    # Console logging goes to stderr; stdout carries command output.
    ch = logging.StreamHandler(sys.stderr)
    if args.verbose:
        ch.setLevel(logging.DEBUG)
    elif args.quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    log.addHandler(ch)
    root_log.addHandler(ch)

    log.debug('Checking script requirements...')
    if not args.verbose and not args.quiet:
        log.debug('No output level specified. Defaulting to INFO.')

    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info('+  %s', os.path.basename(sys.argv[0]))
    log.info('+  Python Version: %s', sys.version.split()[0])
    log.info('+  Today is: %s', date.today())
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    return args


# ****************************************************************************************
# Main
# ****************************************************************************************


def main() -> None:
    args = handle_args()
    settings = load_settings()
    if args.feeds:
        settings = replace(settings, feeds_file=args.feeds)
    sys.exit(asyncio.run(run_command(args, settings)))


if __name__ == '__main__':
    main()
