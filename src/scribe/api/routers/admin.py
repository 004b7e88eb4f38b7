"""Admin API router.

JSON endpoints for managing blog content, guarded by the admin bearer token:
- GET    /admin/api/posts                 - All posts, drafts included
- POST   /admin/api/posts                 - Create a post
- GET    /admin/api/posts/{id}            - Read a post
- PUT    /admin/api/posts/{id}            - Partially update a post
- DELETE /admin/api/posts/{id}            - Delete a post and its comments
- GET    /admin/api/posts/{id}/comments   - Comments of a post, spam included
- DELETE /admin/api/comments/{id}         - Delete a comment and its replies
- DELETE /admin/api/page-cache            - Purge every cached page

Every content mutation is committed before the change event is published,
so the purged pages re-render from the new state.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from scribe.api.deps import BlogUrlsDep, ChangeBusDep, PageCacheDep, require_admin
from scribe.api.errors import NotFoundError
from scribe.cache.keys import BlogUrls
from scribe.core.model import Comment, Post, PostCreate, PostUpdate
from scribe.events.publisher import publish_post_change
from scribe.persistence.db import get_session
from scribe.persistence.repositories import CommentRepository, PostRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/api",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _post_dict(post: Post, urls: BlogUrls) -> dict[str, Any]:
    data = post.model_dump(mode="json")
    data["url"] = urls.post(post)
    data["is_listed"] = post.is_listed
    return data


def _comment_dict(comment: Comment) -> dict[str, Any]:
    return comment.model_dump(mode="json")


@router.get("/posts")
async def list_posts(
    urls: BlogUrlsDep,
    page: int = Query(default=0, ge=0),
    page_size: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """List every post, newest first, including drafts and private posts."""
    result = await PostRepository(session).list_posts(
        page_index=page, page_size=page_size, listed_only=False
    )
    return {
        "items": [_post_dict(post, urls) for post in result.items],
        "total": result.total,
        "total_pages": result.total_pages,
    }


@router.post("/posts", status_code=201)
async def create_post(
    data: PostCreate,
    bus: ChangeBusDep,
    urls: BlogUrlsDep,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Create a post. The slug is derived from the title when omitted."""
    post = await PostRepository(session).create(data)
    await session.commit()
    logger.info("Created post %d (%s)", post.id, post.slug)
    publish_post_change(bus, post)
    return _post_dict(post, urls)


@router.get("/posts/{post_id}")
async def get_post(
    post_id: int,
    urls: BlogUrlsDep,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    post = await PostRepository(session).get(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))
    return _post_dict(post, urls)


@router.put("/posts/{post_id}")
async def update_post(
    post_id: int,
    data: PostUpdate,
    bus: ChangeBusDep,
    urls: BlogUrlsDep,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Update the fields present in the body."""
    repo = PostRepository(session)
    previous = await repo.get(post_id)
    if previous is None:
        raise NotFoundError("Post", str(post_id))
    post = await repo.update(post_id, data)
    if post is None:
        raise NotFoundError("Post", str(post_id))
    await session.commit()
    logger.info("Updated post %d (%s)", post.id, post.slug)

    # A new slug or date moves the post; purge the old address too.
    if urls.post(previous) != urls.post(post):
        publish_post_change(bus, previous)
    publish_post_change(bus, post)
    return _post_dict(post, urls)


@router.delete("/posts/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    bus: ChangeBusDep,
    session: AsyncSession = Depends(get_session),
) -> Response:
    post = await PostRepository(session).delete(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))
    await session.commit()
    logger.info("Deleted post %d (%s)", post.id, post.slug)
    publish_post_change(bus, post)
    return Response(status_code=204)


@router.get("/posts/{post_id}/comments")
async def list_post_comments(
    post_id: int,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Comments of a post in thread order, spam included."""
    if await PostRepository(session).get(post_id) is None:
        raise NotFoundError("Post", str(post_id))
    comments = await CommentRepository(session).list_for_post(post_id, include_spam=True)
    return {"items": [_comment_dict(c) for c in comments]}


@router.delete("/comments/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    bus: ChangeBusDep,
    session: AsyncSession = Depends(get_session),
) -> Response:
    """Delete a comment with its replies and purge the post's pages."""
    comment = await CommentRepository(session).delete(comment_id)
    if comment is None:
        raise NotFoundError("Comment", str(comment_id))
    post = await PostRepository(session).get(comment.post_id)
    await session.commit()
    logger.info("Deleted comment %d on post %d", comment.id, comment.post_id)
    publish_post_change(bus, post)
    return Response(status_code=204)


@router.delete("/page-cache")
async def clear_page_cache(cache: PageCacheDep) -> dict[str, int]:
    """Drop every cached page."""
    cleared = cache.clear() if cache is not None else 0
    logger.info("Cleared %d cached pages", cleared)
    return {"cleared": cleared}
