"""Public blog routes.

Cached (served through the page cache):
- GET {prefix}                              - Newest listed posts
- GET {prefix}/page/{n}                     - Listing page n
- GET {prefix}/tagged/{tag}[/page/{n}]      - Posts with a tag
- GET {prefix}/rss                          - RSS feed
- GET {prefix}/{year}/{month}/{id}-{slug}   - Post page (".json" suffix for JSON)

Uncached:
- GET  {prefix}/search[/page/{n}]?q=        - Search results
- POST {prefix}/{year}/{month}/{id}-{slug}  - Comment submission

Routes are built per application because the prefix is configurable.
"""

from __future__ import annotations

import hmac
import logging
from typing import Annotated, Any
from urllib.parse import urljoin

from fastapi import APIRouter, BackgroundTasks, Depends, Form, Request
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import RedirectResponse, Response

from scribe.api.deps import (
    BlogUrlsDep,
    ChangeBusDep,
    SettingsDep,
    get_akismet,
    get_notifier,
    get_recaptcha,
)
from scribe.api.errors import NotFoundError
from scribe.api.templating import templates
from scribe.cache.handler import CachedPageRoute
from scribe.cache.keys import BlogUrls
from scribe.config import Settings
from scribe.core.feed import RSS_CONTENT_TYPE, RssFeedBuilder
from scribe.core.model import CommentForm, Post
from scribe.core.posts import canonical_url, paginate, parse_slug, post_json
from scribe.events.publisher import publish_post_change
from scribe.integrations.akismet import AkismetClient, AkismetComment
from scribe.integrations.mail import CommentNotification, CommentNotifier, CommentSummary
from scribe.integrations.recaptcha import RecaptchaVerifier
from scribe.observability.metrics import record_comment
from scribe.persistence.db import get_session
from scribe.persistence.repositories import (
    CommentRepository,
    InvalidRecipientError,
    PostRepository,
)

logger = logging.getLogger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_session)]

POST_PATH = "/{year:int}/{month:int}/{post_id:int}-{slug}"

INVALID_RECAPTCHA = "Invalid recaptcha"
MISSING_FIELDS = "Please fill all required fields"


async def _render_listing(
    request: Request,
    session: AsyncSession,
    template: str,
    *,
    page_num: int = 1,
    tag: str | None = None,
    search: str | None = None,
) -> Response:
    if page_num < 1:
        raise NotFoundError("Page", str(page_num))

    config: Settings = request.app.state.settings
    urls: BlogUrls = request.app.state.blog_urls
    page_index = page_num - 1
    repo = PostRepository(session)
    page = await repo.list_posts(
        search=search or None,
        tag=tag,
        page_index=page_index,
        page_size=config.page_size,
    )

    logger.info(
        "Listed posts",
        extra={
            "list_items": {
                "search_query": search,
                "tag": tag,
                "page_index": page_index,
                "page_size": config.page_size,
            }
        },
    )

    nav = paginate(page_index, page.total_pages)
    return templates.TemplateResponse(
        request,
        template,
        {
            "urls": urls,
            "posts": page.items,
            "total": page.total,
            "total_pages": nav.total_pages,
            "page_num": nav.page_num,
            "prev_page": nav.prev_page,
            "next_page": nav.next_page,
            "page_size": config.page_size,
            "tag": tag,
            "search_query": search,
            "sidebar_tags": await repo.tag_counts(),
        },
    )


def _can_view(post: Post, secret: str | None) -> bool:
    if post.private_viewing_key:
        return secret is not None and hmac.compare_digest(
            secret.encode("utf-8"), post.private_viewing_key.encode("utf-8")
        )
    return post.is_published


def _post_context(request: Request, post: Post, **extra: Any) -> dict[str, Any]:
    config: Settings = request.app.state.settings
    urls: BlogUrls = request.app.state.blog_urls
    recaptcha: RecaptchaVerifier = request.app.state.recaptcha
    context: dict[str, Any] = {
        "urls": urls,
        "post": post,
        "post_url": urls.post(post),
        "canonical_url": canonical_url(post, urls, config.blog_url),
        "header_image_url": post.metadata.header_image_url,
        "recaptcha_client_key": recaptcha.client_key,
        "comment_form": {"error": None, "validity": {}, "values": {}},
    }
    context.update(extra)
    return context


async def list_posts(request: Request, session: SessionDep) -> Response:
    return await _render_listing(request, session, "index.html")


async def list_posts_page(request: Request, page_num: int, session: SessionDep) -> Response:
    return await _render_listing(request, session, "index.html", page_num=page_num)


async def list_tagged(request: Request, tag: str, session: SessionDep) -> Response:
    return await _render_listing(request, session, "tagged.html", tag=tag)


async def list_tagged_page(
    request: Request, tag: str, page_num: int, session: SessionDep
) -> Response:
    return await _render_listing(request, session, "tagged.html", tag=tag, page_num=page_num)


async def search_posts(request: Request, session: SessionDep, q: str | None = None) -> Response:
    return await _render_listing(request, session, "search.html", search=q)


async def search_posts_page(
    request: Request, page_num: int, session: SessionDep, q: str | None = None
) -> Response:
    return await _render_listing(request, session, "search.html", search=q, page_num=page_num)


async def rss_feed(
    session: SessionDep,
    config: SettingsDep,
    urls: BlogUrlsDep,
) -> Response:
    """RSS feed of the newest listed posts."""
    page = await PostRepository(session).list_posts(page_size=config.rss_item_count)
    builder = RssFeedBuilder(
        title=config.blog_title,
        description=config.blog_description,
        site_url=config.blog_url,
        urls=urls,
    )
    return Response(content=builder.build(page.items), media_type=RSS_CONTENT_TYPE)


async def show_post(
    request: Request,
    year: int,
    month: int,
    post_id: int,
    slug: str,
    session: SessionDep,
    urls: BlogUrlsDep,
    secret: str | None = None,
) -> Response:
    """Render a post, or its JSON form when the slug ends in ``.json``.

    Requests for a stale slug or date are redirected to the post's URL.
    """
    parsed = parse_slug(slug)
    post = await PostRepository(session).get(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))

    stamp = post.published_at or post.created_at
    if post.slug != parsed.slug or (stamp.year, stamp.month) != (year, month):
        target = urls.post(post) + (".json" if parsed.is_json else "")
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return RedirectResponse(target, status_code=302)

    if not _can_view(post, secret):
        raise NotFoundError("Post", str(post_id))

    logger.info(
        "Read post",
        extra={
            "read_item": {
                "id": post.id,
                "slug": post.slug,
                "type": "post",
                "is_json": parsed.is_json,
            }
        },
    )

    if parsed.is_json:
        return ORJSONResponse(post_json(post, urls))

    comments = await CommentRepository(session).list_for_post(post.id)
    return templates.TemplateResponse(
        request,
        "post.html",
        _post_context(request, post, comments=comments),
    )


async def submit_comment(
    request: Request,
    post_id: int,
    slug: str,
    session: SessionDep,
    bus: ChangeBusDep,
    config: SettingsDep,
    urls: BlogUrlsDep,
    recaptcha: Annotated[RecaptchaVerifier, Depends(get_recaptcha)],
    akismet: Annotated[AkismetClient, Depends(get_akismet)],
    notifier: Annotated[CommentNotifier, Depends(get_notifier)],
    background_tasks: BackgroundTasks,
    author: Annotated[str, Form()] = "",
    email: Annotated[str, Form()] = "",
    website: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
    recipient_path: Annotated[str, Form()] = "",
    recaptcha_response: Annotated[str, Form(alias="g-recaptcha-response")] = "",
) -> Response:
    """Accept a comment on a post.

    Success redirects (303) back to the post. Captcha or validation
    failures re-render the post with the error and the submitted values.
    Either way the post's cached pages are invalidated.
    """
    posts = PostRepository(session)
    post = await posts.get(post_id)
    if post is None:
        raise NotFoundError("Post", str(post_id))

    client_ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    submitted = {
        "author": author,
        "email": email,
        "website": website,
        "content": content,
        "recipient_path": recipient_path,
    }

    comment_error: str | None = None
    validity: dict[str, str] = {}
    replied_to = None
    outcome = "accepted"

    if recaptcha.is_available and not await recaptcha.verify(recaptcha_response, client_ip):
        comment_error = INVALID_RECAPTCHA
        outcome = "captcha_failed"
    else:
        try:
            form = CommentForm(**submitted)
            spam = False
            if akismet.is_available:
                spam = await akismet.check_spam(
                    AkismetComment(
                        user_ip=client_ip,
                        user_agent=user_agent,
                        referrer=request.headers.get("referer"),
                        comment_author=form.author,
                        comment_author_email=form.email,
                        comment_author_url=form.website,
                        comment_content=form.content,
                    )
                )
            created = await CommentRepository(session).create(
                post.id,
                form,
                user_host_address=client_ip,
                user_agent=user_agent,
                spam=spam,
            )
            await session.commit()
            replied_to = created.replied_to
            if spam:
                outcome = "spam"
        except ValidationError as e:
            validity = {str(err["loc"][0]): "has-error" for err in e.errors() if err["loc"]}
            comment_error = MISSING_FIELDS
            outcome = "invalid"
        except InvalidRecipientError:
            validity = {"recipient_path": "has-error"}
            comment_error = MISSING_FIELDS
            outcome = "invalid"

    record_comment(outcome)

    if comment_error is None and config.comments_noreply_email and notifier.is_available:
        background_tasks.add_task(
            notifier.send_new_comment_notification,
            CommentNotification(
                op_email=post.author.email,
                op_title=post.title,
                op_url=urljoin(config.blog_url, urls.post(post)),
                comment=CommentSummary(
                    author=author, email=email, website=website or None, content=content
                ),
                op_comment=(
                    CommentSummary(
                        author=replied_to.author.name,
                        email=replied_to.author.email,
                        website=replied_to.author.website,
                        content=replied_to.content,
                    )
                    if replied_to is not None
                    else None
                ),
            ),
        )

    publish_post_change(bus, post)

    if comment_error is None:
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return RedirectResponse(target, status_code=303)

    comments = await CommentRepository(session).list_for_post(post.id)
    return templates.TemplateResponse(
        request,
        "post.html",
        _post_context(
            request,
            post,
            comments=comments,
            comment_form={"error": comment_error, "validity": validity, "values": submitted},
        ),
    )


def create_blog_router(prefix: str) -> APIRouter:
    """Build the public blog router mounted at ``prefix`` ("" for the root)."""
    prefix = prefix.rstrip("/")
    index_path = "" if prefix else "/"

    pages = APIRouter(prefix=prefix, tags=["blog"], route_class=CachedPageRoute)
    pages.add_api_route(index_path, list_posts, methods=["GET"], response_class=Response)
    pages.add_api_route(
        "/page/{page_num:int}", list_posts_page, methods=["GET"], response_class=Response
    )
    pages.add_api_route("/rss", rss_feed, methods=["GET"], response_class=Response)
    pages.add_api_route("/tagged/{tag}", list_tagged, methods=["GET"], response_class=Response)
    pages.add_api_route(
        "/tagged/{tag}/page/{page_num:int}",
        list_tagged_page,
        methods=["GET"],
        response_class=Response,
    )
    pages.add_api_route(POST_PATH, show_post, methods=["GET"], response_class=Response)

    actions = APIRouter(prefix=prefix, tags=["blog"])
    actions.add_api_route("/search", search_posts, methods=["GET"], response_class=Response)
    actions.add_api_route(
        "/search/page/{page_num:int}",
        search_posts_page,
        methods=["GET"],
        response_class=Response,
    )
    actions.add_api_route(POST_PATH, submit_comment, methods=["POST"], response_class=Response)

    router = APIRouter()
    router.include_router(pages)
    router.include_router(actions)
    return router
