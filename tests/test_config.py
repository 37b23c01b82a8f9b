##########################################################################################
#
# Script name: test_config.py
#
# Description: Feed list loading and environment settings.
#
##########################################################################################

from pathlib import Path

import pytest

from article_feed.config import FEEDS, FeedDescriptor, load_feed_descriptors, load_settings


def _write_file(path: Path, content: str) -> None:
    path.write_text(content.strip() + '\n', encoding='utf-8')


def test_load_feed_descriptors_reads_yaml(tmp_path: Path) -> None:
    feeds_path = tmp_path / 'feeds.yaml'
    _write_file(
        feeds_path,
        '''
feeds:
  - url: https://example.com/feed.xml
    topic: Tech
    source: Example
  - url: https://example.com/feed.xml
    topic: Tech
    source: Duplicate
  - topic: News
    source: Missing URL
  - url: https://other.example/rss
    topic: News
        ''',
    )

    descriptors = load_feed_descriptors(str(feeds_path))

    assert descriptors == [
        FeedDescriptor(url='https://example.com/feed.xml', topic='Tech', source='Example'),
        FeedDescriptor(url='https://other.example/rss', topic='News', source='https://other.example/rss'),
    ]


def test_load_feed_descriptors_falls_back_to_builtin_list(tmp_path: Path) -> None:
    assert load_feed_descriptors(None) == FEEDS
    assert load_feed_descriptors(str(tmp_path / 'missing.yaml')) == FEEDS


def test_load_feed_descriptors_rejects_non_list(tmp_path: Path) -> None:
    feeds_path = tmp_path / 'feeds.yaml'
    _write_file(feeds_path, 'feeds: https://example.com/feed.xml')
    with pytest.raises(ValueError):
        load_feed_descriptors(str(feeds_path))


def test_load_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('REDIS_URL', 'redis://cache:6379/1')
    monkeypatch.setenv('OPENAI_MODEL', 'gpt-test')
    monkeypatch.setenv('FEED_REQUEST_TIMEOUT', 'soon')
    monkeypatch.delenv('OPENAI_API_KEY', raising=False)

    settings = load_settings()

    assert settings.redis_url == 'redis://cache:6379/1'
    assert settings.openai_model == 'gpt-test'
    assert settings.openai_api_key == ''
    assert settings.request_timeout == 15.0
