from __future__ import annotations

import html
import re
import unicodedata
from datetime import datetime, timezone


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def strip_html(value: str, limit: int | None = None) -> str:
    text = re.sub(r"<[^>]+>", " ", value or "")
    text = html.unescape(text)
    text = normalize_whitespace(text)
    if limit is not None:
        text = text[:limit]
    return text


def slugify(value: str, max_chars: int = 96) -> str:
    decomposed = unicodedata.normalize("NFD", (value or "").lower())
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    slug = re.sub(r"[^a-z0-9]+", "-", stripped).strip("-")
    return slug[:max_chars]


def safe_excerpt(text: str, max_chars: int = 220) -> str:
    cleaned = normalize_whitespace(text)
    return f"{cleaned[:max_chars]}…"
