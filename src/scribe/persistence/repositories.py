"""Repository pattern for blog persistence.

Repositories take an ``AsyncSession`` and return pydantic models. They
flush but never commit; the caller owns the transaction.

Listing queries apply the public visibility rule in SQL: a post is listed
when it has a publication date and no private viewing key. The date only
orders posts; a future date does not hide a post, because cached listings
are purged by content changes and never by the clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from scribe.core.model import (
    Author,
    Comment,
    CommentAuthor,
    CommentForm,
    Post,
    PostCreate,
    PostMetadata,
    PostPage,
    PostUpdate,
)
from scribe.core.posts import slugify, total_pages
from scribe.persistence.tables import CommentTable, PostTable, PostTagTable, utcnow


def _as_utc(value: datetime | None) -> datetime | None:
    """Normalize to an aware UTC datetime (SQLite returns naive values)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_post(row: PostTable) -> Post:
    return Post(
        id=row.id,
        slug=row.slug,
        title=row.title,
        description=row.description,
        content=row.content,
        tags=[t.tag for t in row.tags],
        author=Author(name=row.author_name, email=row.author_email),
        published_at=_as_utc(row.published_at),
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
        private_viewing_key=row.private_viewing_key,
        metadata=PostMetadata.model_validate(row.meta or {}),
    )


def _to_comment(row: CommentTable) -> Comment:
    return Comment(
        id=row.id,
        post_id=row.post_id,
        path=row.path,
        author=CommentAuthor(
            name=row.author_name,
            email=row.author_email,
            website=row.author_website,
        ),
        content=row.content,
        user_host_address=row.user_host_address,
        user_agent=row.user_agent,
        spam=row.spam,
        created_at=_as_utc(row.created_at),
    )


def _path_sort_key(comment: Comment) -> tuple[int, ...]:
    return tuple(int(part) for part in comment.path.split("/") if part)


class PostRepository:
    """Repository for post operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _listed() -> ColumnElement[bool]:
        return and_(
            PostTable.published_at.is_not(None),
            PostTable.private_viewing_key.is_(None),
        )

    async def get(self, post_id: int) -> Post | None:
        row = await self.session.get(PostTable, post_id)
        return None if row is None else _to_post(row)

    async def list_posts(
        self,
        *,
        search: str | None = None,
        tag: str | None = None,
        page_index: int = 0,
        page_size: int = 10,
        listed_only: bool = True,
    ) -> PostPage:
        """Return one page of posts, newest first.

        ``search`` matches title, description and content case-insensitively;
        ``tag`` restricts to posts carrying that tag.
        """
        stmt = select(PostTable)
        if listed_only:
            stmt = stmt.where(self._listed())
        if tag:
            stmt = stmt.where(
                PostTable.id.in_(select(PostTagTable.post_id).where(PostTagTable.tag == tag))
            )
        if search:
            pattern = f"%{_escape_like(search)}%"
            stmt = stmt.where(
                or_(
                    PostTable.title.ilike(pattern, escape="\\"),
                    PostTable.description.ilike(pattern, escape="\\"),
                    PostTable.content.ilike(pattern, escape="\\"),
                )
            )

        total = await self.session.scalar(select(func.count()).select_from(stmt.subquery()))
        total = total or 0

        stmt = (
            stmt.order_by(
                func.coalesce(PostTable.published_at, PostTable.created_at).desc(),
                PostTable.id.desc(),
            )
            .offset(page_index * page_size)
            .limit(page_size)
        )
        rows = (await self.session.scalars(stmt)).all()

        return PostPage(
            items=[_to_post(row) for row in rows],
            total=total,
            total_pages=total_pages(total, page_size),
            page_index=page_index,
            page_size=page_size,
        )

    async def tag_counts(self) -> list[tuple[str, int]]:
        """Tags of listed posts with their post counts, most used first."""
        count = func.count(PostTagTable.post_id)
        stmt = (
            select(PostTagTable.tag, count)
            .join(PostTable, PostTable.id == PostTagTable.post_id)
            .where(self._listed())
            .group_by(PostTagTable.tag)
            .order_by(count.desc(), PostTagTable.tag)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def create(self, data: PostCreate) -> Post:
        row = PostTable(
            slug=data.slug or slugify(data.title),
            title=data.title,
            description=data.description,
            content=data.content,
            author_name=data.author.name,
            author_email=data.author.email,
            published_at=_as_utc(data.published_at),
            private_viewing_key=data.private_viewing_key or None,
            meta=data.metadata.model_dump(exclude_none=True),
            tags=[PostTagTable(tag=tag, position=i) for i, tag in enumerate(data.tags)],
        )
        self.session.add(row)
        await self.session.flush()
        return _to_post(row)

    async def update(self, post_id: int, data: PostUpdate) -> Post | None:
        """Apply the fields set on ``data``. Returns None if the post is missing."""
        row = await self.session.get(PostTable, post_id)
        if row is None:
            return None

        changes = data.model_dump(exclude_unset=True)
        for name in ("title", "slug", "description", "content"):
            if changes.get(name) is not None:
                setattr(row, name, changes[name])
        if data.author is not None:
            row.author_name = data.author.name
            row.author_email = data.author.email
        if "published_at" in changes:
            row.published_at = _as_utc(data.published_at)
        if "private_viewing_key" in changes:
            row.private_viewing_key = data.private_viewing_key or None
        if data.metadata is not None:
            row.meta = data.metadata.model_dump(exclude_none=True)
        if data.tags is not None:
            self._sync_tags(row, data.tags)
        row.updated_at = utcnow()

        await self.session.flush()
        return _to_post(row)

    def _sync_tags(self, row: PostTable, tags: list[str]) -> None:
        existing = {t.tag: t for t in row.tags}
        kept: list[PostTagTable] = []
        for position, tag in enumerate(tags):
            tag_row = existing.get(tag) or PostTagTable(tag=tag)
            tag_row.position = position
            kept.append(tag_row)
        row.tags = kept

    async def delete(self, post_id: int) -> Post | None:
        """Delete a post with its tags and comments. Returns the deleted post."""
        row = await self.session.get(PostTable, post_id)
        if row is None:
            return None
        post = _to_post(row)
        await self.session.execute(delete(CommentTable).where(CommentTable.post_id == post_id))
        await self.session.delete(row)
        await self.session.flush()
        return post


class InvalidRecipientError(ValueError):
    """A reply named a comment that does not exist on the post."""

    def __init__(self, recipient_path: str):
        self.recipient_path = recipient_path
        super().__init__(f"No comment at path '{recipient_path}'")


@dataclass
class CreatedComment:
    """A newly stored comment and the comment it replies to, if any."""

    comment: Comment
    replied_to: Comment | None = None


class CommentRepository:
    """Repository for comment operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, comment_id: int) -> Comment | None:
        row = await self.session.get(CommentTable, comment_id)
        return None if row is None else _to_comment(row)

    async def list_for_post(self, post_id: int, include_spam: bool = False) -> list[Comment]:
        """Comments of a post in thread order (each reply follows its parent)."""
        stmt = select(CommentTable).where(CommentTable.post_id == post_id)
        if not include_spam:
            stmt = stmt.where(CommentTable.spam.is_(False))
        rows = (await self.session.scalars(stmt)).all()
        return sorted((_to_comment(row) for row in rows), key=_path_sort_key)

    async def create(
        self,
        post_id: int,
        form: CommentForm,
        *,
        user_host_address: str | None = None,
        user_agent: str | None = None,
        spam: bool = False,
    ) -> CreatedComment:
        """Store a comment, threading it under ``form.recipient_path`` if set.

        Raises:
            InvalidRecipientError: If the recipient path names no comment on
                this post.
        """
        parent: CommentTable | None = None
        if form.recipient_path:
            parent = await self.session.scalar(
                select(CommentTable).where(
                    CommentTable.post_id == post_id,
                    CommentTable.path == form.recipient_path,
                )
            )
            if parent is None:
                raise InvalidRecipientError(form.recipient_path)

        row = CommentTable(
            post_id=post_id,
            path="",
            author_name=form.author,
            author_email=form.email,
            author_website=form.website,
            content=form.content,
            user_host_address=user_host_address,
            user_agent=user_agent,
            spam=spam,
        )
        self.session.add(row)
        await self.session.flush()

        row.path = f"{parent.path}/{row.id}" if parent is not None else str(row.id)
        await self.session.flush()

        return CreatedComment(
            comment=_to_comment(row),
            replied_to=_to_comment(parent) if parent is not None else None,
        )

    async def delete(self, comment_id: int) -> Comment | None:
        """Delete a comment and its replies. Returns the deleted comment."""
        row = await self.session.get(CommentTable, comment_id)
        if row is None:
            return None
        comment = _to_comment(row)
        await self.session.execute(
            delete(CommentTable).where(
                CommentTable.post_id == row.post_id,
                or_(
                    CommentTable.path == row.path,
                    CommentTable.path.like(f"{_escape_like(row.path)}/%", escape="\\"),
                ),
            )
        )
        await self.session.flush()
        return comment
