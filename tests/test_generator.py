##########################################################################################
#
# Script name: test_generator.py
#
# Description: Article generation through a stubbed OpenAI client and the offline fallback.
#
##########################################################################################

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from article_feed.errors import GenerationFailure
from article_feed.generator import ArticleGenerator, build_user_prompt
from article_feed.models import Item


ITEM = Item(
    id='guid-1',
    title='Chips & <export> rules',
    url='https://example.com/chips',
    date='2026-03-01T10:00:00.000Z',
    topic='Tech',
    source='Example Wire',
    summary='x' * 2000,
    tags=('Tech',),
    priority_score=0.5,
)


class StubCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.requests: list[dict] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions: StubCompletions) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_user_prompt_carries_title_link_and_bounded_excerpt() -> None:
    prompt = build_user_prompt(ITEM)
    assert 'ORIGINAL TITLE: Chips & <export> rules' in prompt
    assert 'LINK: https://example.com/chips' in prompt
    assert prompt.endswith('EXCERPT: ' + 'x' * 1500)


@pytest.mark.asyncio
async def test_generate_without_api_key_returns_summary_article() -> None:
    artifact = await ArticleGenerator().generate(ITEM)
    assert artifact.html.startswith('<article><h1>Chips &amp; &lt;export&gt; rules</h1>')
    assert 'href="https://example.com/chips"' in artifact.html
    assert artifact.meta.slug == 'chips-export-rules'
    assert artifact.meta.tags == ['Tech']


@pytest.mark.asyncio
async def test_generate_wraps_plain_text_completion() -> None:
    completions = StubCompletions(content='First paragraph\nSecond paragraph')
    generator = ArticleGenerator(model='test-model', client=_client(completions))

    artifact = await generator.generate(ITEM)

    assert '<p>First paragraph</p><p>Second paragraph</p>' in artifact.html
    assert artifact.html.endswith('</div></article>')
    assert completions.requests[0]['model'] == 'test-model'
    assert completions.requests[0]['messages'][0]['role'] == 'system'


@pytest.mark.asyncio
async def test_generate_keeps_html_completion() -> None:
    completions = StubCompletions(content='<h1>Ready</h1><p>Body</p>')
    artifact = await ArticleGenerator(client=_client(completions)).generate(ITEM)
    assert artifact.html.startswith('<article><h1>Ready</h1><p>Body</p>')


@pytest.mark.asyncio
async def test_generate_raises_generation_failure_on_client_error() -> None:
    completions = StubCompletions(error=OpenAIError('rate limited'))
    with pytest.raises(GenerationFailure):
        await ArticleGenerator(client=_client(completions)).generate(ITEM)
