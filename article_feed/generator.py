##########################################################################################
#
# Script name: generator.py
#
# Description: Long-form article generation through OpenAI, with a summary-only fallback.
#
##########################################################################################

import logging
import os
from functools import lru_cache
from pathlib import Path

from openai import AsyncOpenAI, OpenAIError

from .config import DEFAULT_OPENAI_MODEL
from .errors import GenerationFailure
from .models import Artifact, Item
from .render import base_meta, ensure_html, fallback_html


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

EXCERPT_INPUT_CHARS = 1500

DEFAULT_SYSTEM_PROMPT = 'You write concise, journalistic articles that read well on mobile.'

DEFAULT_ARTICLE_PROMPT = '\n'.join(
    [
        'Write a clear, concise and well-structured article (350-700 words) from the elements below.',
        'Audience: busy readers who want the facts without filler.',
        'Structure:',
        '- A punchy title (H1).',
        '- 2 to 4 subheadings (H2/H3) with short paragraphs.',
        '- One "Key takeaways" box (bullet list).',
        'Constraints: factual, no unsourced claims, no gratuitous jargon.',
        'End with a footer linking to the provided source.',
    ]
)

SYSTEM_PROMPT_PATH = os.getenv('ARTICLE_SYSTEM_PROMPT_FILE') or ''
ARTICLE_PROMPT_PATH = os.getenv('ARTICLE_PROMPT_FILE') or ''


# ****************************************************************************************
# Functions
# ****************************************************************************************


@lru_cache(maxsize=4)
def _load_prompt(path: str, default: str) -> str:
    if not path:
        return default
    prompt_path = Path(path)
    if not prompt_path.exists():
        log.warning('Missing prompt file %s, using built-in prompt.', prompt_path)
        return default
    try:
        content = prompt_path.read_text(encoding='utf-8').strip()
    except OSError as exc:
        log.warning('Failed reading prompt file %s: %s', prompt_path, exc)
        return default
    return content or default


def build_user_prompt(item: Item) -> str:
    instructions = _load_prompt(ARTICLE_PROMPT_PATH, DEFAULT_ARTICLE_PROMPT)
    return (
        f'{instructions}\n\n'
        f'ORIGINAL TITLE: {item.title}\n'
        f'LINK: {item.url}\n'
        f'EXCERPT: {item.summary[:EXCERPT_INPUT_CHARS]}'
    )


# ****************************************************************************************
# Classes
# ****************************************************************************************


class ArticleGenerator:
    def __init__(
        self,
        api_key: str = '',
        model: str = DEFAULT_OPENAI_MODEL,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        if client is None and api_key:
            client = AsyncOpenAI(api_key=api_key)
        self.client = client

    async def generate(self, item: Item) -> Artifact:
        if self.client is None:
            return Artifact(html=fallback_html(item), meta=base_meta(item))

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=0.6,
                max_tokens=1200,
                messages=[
                    {'role': 'system', 'content': _load_prompt(SYSTEM_PROMPT_PATH, DEFAULT_SYSTEM_PROMPT)},
                    {'role': 'user', 'content': build_user_prompt(item)},
                ],
            )
        except OpenAIError as exc:
            raise GenerationFailure(f'OpenAI generation failed for {item.title!r}: {exc}') from exc

        body = ''
        if response.choices:
            body = (response.choices[0].message.content or '').strip()
        return Artifact(html=ensure_html(body, item), meta=base_meta(item))
