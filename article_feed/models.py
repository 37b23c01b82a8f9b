from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class Item:
    id: str
    title: str
    url: str
    date: str
    topic: str
    source: str
    summary: str
    tags: tuple[str, ...] = ()
    priority_score: float = 0.0

    def canonical_text(self) -> str:
        return f"{self.title}\n{self.summary}".strip()

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["tags"] = list(self.tags)
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Item:
        return cls(
            id=str(payload.get("id") or ""),
            title=str(payload.get("title") or ""),
            url=str(payload.get("url") or ""),
            date=str(payload.get("date") or ""),
            topic=str(payload.get("topic") or ""),
            source=str(payload.get("source") or ""),
            summary=str(payload.get("summary") or ""),
            tags=tuple(payload.get("tags") or ()),
            priority_score=float(payload.get("priority_score") or 0.0),
        )


@dataclass(frozen=True)
class PostMeta:
    id: str
    slug: str
    title: str
    date: str
    topic: str
    source: str
    url: str
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Artifact:
    html: str
    meta: PostMeta

    def to_dict(self) -> dict[str, Any]:
        return {"html": self.html, "meta": self.meta.to_dict()}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Artifact:
        meta = payload.get("meta") or {}
        return cls(
            html=str(payload["html"]),
            meta=PostMeta(
                id=str(meta.get("id") or ""),
                slug=str(meta.get("slug") or ""),
                title=str(meta.get("title") or ""),
                date=str(meta.get("date") or ""),
                topic=str(meta.get("topic") or ""),
                source=str(meta.get("source") or ""),
                url=str(meta.get("url") or ""),
                tags=list(meta.get("tags") or []),
            ),
        )
