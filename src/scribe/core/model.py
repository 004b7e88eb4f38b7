"""Pydantic models for posts and comments.

Repositories return these models rather than ORM rows so that handlers and
change event payloads never hold a live database session.
"""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class Author(BaseModel):
    """Author of a post."""

    name: str
    email: str | None = None


class PostMetadata(BaseModel):
    """Presentation metadata attached to a post."""

    canonical_url: str | None = None
    header_image_url: str | None = None


class Post(BaseModel):
    """A blog post as read from storage."""

    model_config = ConfigDict(frozen=True)

    id: int
    slug: str
    title: str
    description: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    author: Author
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    private_viewing_key: str | None = None
    metadata: PostMetadata = Field(default_factory=PostMetadata)

    @property
    def is_published(self) -> bool:
        """A post is published once it has a publication date."""
        return self.published_at is not None

    @property
    def is_private(self) -> bool:
        return bool(self.private_viewing_key)

    @property
    def is_listed(self) -> bool:
        """Whether the post appears in listings and feeds."""
        return self.is_published and not self.is_private


class PostCreate(BaseModel):
    """Admin payload for creating a post."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=500)
    slug: str | None = None
    description: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    author: Author
    published_at: datetime | None = None
    private_viewing_key: str | None = None
    metadata: PostMetadata = Field(default_factory=PostMetadata)

    @field_validator("slug")
    @classmethod
    def _check_slug(cls, value: str | None) -> str | None:
        if value is not None and not _SLUG_PATTERN.match(value):
            raise ValueError("slug must be lowercase words separated by hyphens")
        return value

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        return _dedupe_tags(value)


class PostUpdate(BaseModel):
    """Admin payload for a partial post update."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=500)
    slug: str | None = None
    description: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    author: Author | None = None
    published_at: datetime | None = None
    private_viewing_key: str | None = None
    metadata: PostMetadata | None = None

    @field_validator("slug")
    @classmethod
    def _check_slug(cls, value: str | None) -> str | None:
        if value is not None and not _SLUG_PATTERN.match(value):
            raise ValueError("slug must be lowercase words separated by hyphens")
        return value

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _dedupe_tags(value)


class PostPage(BaseModel):
    """One page of posts plus the totals needed for pagination."""

    items: list[Post]
    total: int
    total_pages: int
    page_index: int
    page_size: int


class CommentAuthor(BaseModel):
    """Author details submitted with a comment."""

    name: str
    email: str | None = None
    website: str | None = None


class Comment(BaseModel):
    """A stored comment.

    ``path`` is the slash-joined chain of ancestor ids ending with the
    comment's own id, e.g. ``"4/9"`` for a reply to comment 4.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    post_id: int
    path: str
    author: CommentAuthor
    content: str
    user_host_address: str | None = None
    user_agent: str | None = None
    spam: bool = False
    created_at: datetime

    @property
    def depth(self) -> int:
        return self.path.count("/")


class CommentForm(BaseModel):
    """Public comment form submission."""

    model_config = ConfigDict(str_strip_whitespace=True)

    author: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=_EMAIL_PATTERN, max_length=320)
    website: str | None = Field(default=None, max_length=500)
    content: str = Field(min_length=1, max_length=20000)
    recipient_path: str | None = None

    @field_validator("website", "recipient_path", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def _dedupe_tags(tags: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
