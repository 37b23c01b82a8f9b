##########################################################################################
#
# Script name: render.py
#
# Description: HTML assembly for generated articles and listing excerpts.
#
##########################################################################################

import re
from html import escape

from .models import Item, PostMeta
from .utils import safe_excerpt, slugify, strip_html


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

HTML_TAG_PATTERN = re.compile(r'</?[a-z][\s\S]*>', re.I)
EXCERPT_MAX_CHARS = 220


# ****************************************************************************************
# Functions
# ****************************************************************************************


def footer(item: Item) -> str:
    return (
        '\n  <hr/>\n'
        '  <div style="opacity:.8;font-size:.9em;margin-top:12px">\n'
        '    Article generated by AI from an RSS feed.\n'
        f'    Source: <a href="{escape(item.url)}" target="_blank" rel="nofollow">{escape(item.source)}</a>.\n'
        '  </div>'
    )


def _paragraphs(text: str) -> str:
    return '<p>' + escape(text).replace('\n', '</p><p>') + '</p>'


def ensure_html(body: str, item: Item) -> str:
    if HTML_TAG_PATTERN.search(body):
        core = body
    else:
        core = f'<h1>{escape(item.title)}</h1>\n{_paragraphs(body)}'
    return f'<article>{core}{footer(item)}</article>'


def fallback_html(item: Item) -> str:
    return f'<article><h1>{escape(item.title)}</h1><p>{escape(item.summary)}</p>{footer(item)}</article>'


def base_meta(item: Item) -> PostMeta:
    return PostMeta(
        id=item.id,
        slug=slugify(item.title),
        title=item.title,
        date=item.date,
        topic=item.topic,
        source=item.source,
        url=item.url,
        tags=list(item.tags),
    )


def excerpt(html_text: str, max_chars: int = EXCERPT_MAX_CHARS) -> str:
    return safe_excerpt(strip_html(html_text), max_chars)
