"""Blog Store — YAML-backed document store for generated blog records."""

from __future__ import annotations

import logging
import math
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import markdown as md_lib
import yaml

log = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


class BlogStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class BlogNotFoundError(KeyError):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class BlogRecord:
    title: str
    content: str
    meta_description: str
    prompt: str
    keywords: list[str] = field(default_factory=list)
    hashtags: list[str] = field(default_factory=list)
    hero_image: str | None = None
    section_images: list[str] = field(default_factory=list)
    status: BlogStatus = BlogStatus.DRAFT
    summary: str | None = None
    id: str = ""
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self):
        self.status = BlogStatus(self.status)

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    @property
    def estimated_read_time(self) -> int:
        """Minutes at 200 words per minute, rounded up."""
        return math.ceil(self.word_count / WORDS_PER_MINUTE)

    @property
    def content_html(self) -> str:
        return md_lib.markdown(self.content, extensions=["tables", "fenced_code"])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "meta_description": self.meta_description,
            "keywords": list(self.keywords),
            "hashtags": list(self.hashtags),
            "hero_image": self.hero_image,
            "section_images": list(self.section_images),
            "prompt": self.prompt,
            "status": self.status.value,
            "word_count": self.word_count,
            "estimated_read_time": self.estimated_read_time,
            "summary": self.summary,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BlogRecord":
        # word_count / estimated_read_time are derived, never loaded
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            content=data.get("content", ""),
            meta_description=data.get("meta_description", ""),
            keywords=list(data.get("keywords") or []),
            hashtags=list(data.get("hashtags") or []),
            hero_image=data.get("hero_image"),
            section_images=list(data.get("section_images") or []),
            prompt=data.get("prompt", ""),
            status=data.get("status", BlogStatus.DRAFT.value),
            summary=data.get("summary"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )


class BlogStore:
    """CRUD over a single YAML file. Each write rewrites the whole file."""

    # Set on create, never through update()
    PROTECTED_FIELDS = {"id", "created_at", "updated_at", "word_count", "estimated_read_time"}
    UPDATABLE_FIELDS = {
        "title", "content", "meta_description", "keywords", "hashtags",
        "hero_image", "section_images", "prompt", "status", "summary",
    }

    def __init__(self, path="data/blogs.yaml"):
        self.path = path
        self.state = self._load()

    def _load(self) -> dict:
        state = {}
        if os.path.exists(self.path):
            with open(self.path) as f:
                state = yaml.safe_load(f) or {}
        if not isinstance(state, dict):
            raise ValueError(f"{self.path} does not contain a blog store mapping")
        # "blogs:" with no items loads as None
        if not isinstance(state.get("blogs"), list):
            state["blogs"] = []
        return state

    def _save(self):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w") as f:
            yaml.dump(self.state, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def _index(self, blog_id: str) -> int:
        for i, entry in enumerate(self.state.get("blogs", [])):
            if isinstance(entry, dict) and entry.get("id") == blog_id:
                return i
        raise BlogNotFoundError(blog_id)

    def create(self, record: BlogRecord) -> BlogRecord:
        """Assign id and timestamps, persist, and return the stored record."""
        now = _now()
        record.id = record.id or uuid.uuid4().hex
        record.created_at = now
        record.updated_at = now
        self.state.setdefault("blogs", []).append(record.to_dict())
        self._save()
        log.info(f"Saved blog {record.id}: {record.title} ({record.word_count} words)")
        return record

    def get(self, blog_id: str) -> BlogRecord:
        return BlogRecord.from_dict(self.state["blogs"][self._index(blog_id)])

    def list_blogs(self, page: int = 1, limit: int = 10) -> tuple[list[BlogRecord], dict]:
        """Newest first, with pagination metadata."""
        page = max(page, 1)
        limit = max(limit, 1)
        entries = [e for e in self.state.get("blogs", []) if isinstance(e, dict)]
        entries.sort(key=lambda e: e.get("created_at", ""), reverse=True)

        start = (page - 1) * limit
        records = [BlogRecord.from_dict(e) for e in entries[start:start + limit]]
        total = len(entries)
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        }
        return records, pagination

    def update(self, blog_id: str, **changes) -> BlogRecord:
        """Apply field changes. Derived and identity fields are ignored."""
        idx = self._index(blog_id)
        ignored = sorted(set(changes) & self.PROTECTED_FIELDS)
        if ignored:
            log.warning(f"Ignoring read-only fields on update: {', '.join(ignored)}")
        unknown = set(changes) - self.PROTECTED_FIELDS - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown blog fields: {', '.join(sorted(unknown))}")

        record = BlogRecord.from_dict(self.state["blogs"][idx])
        for name, value in changes.items():
            if name in self.UPDATABLE_FIELDS:
                setattr(record, name, value)
        record.status = BlogStatus(record.status)
        record.updated_at = _now()

        self.state["blogs"][idx] = record.to_dict()
        self._save()
        log.info(f"Updated blog {blog_id}: {', '.join(sorted(set(changes) - self.PROTECTED_FIELDS)) or 'no fields'}")
        return record

    def attach_images(self, blog_id: str, hero_image: str | None = None,
                      section_images: list[str] | None = None) -> BlogRecord:
        changes = {}
        if hero_image is not None:
            changes["hero_image"] = hero_image
        if section_images is not None:
            changes["section_images"] = list(section_images)
        return self.update(blog_id, **changes)

    def delete(self, blog_id: str) -> bool:
        idx = self._index(blog_id)
        del self.state["blogs"][idx]
        self._save()
        log.info(f"Deleted blog {blog_id}")
        return True

    def count(self) -> int:
        return len(self.state.get("blogs", []))
