"""Review comments anchored to a file line, and replies to them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcommenter.github_api import safe_call
from prcommenter.pagination import collect_pages
from prcommenter.tags import CommentTag, build_body
from prcommenter.tools.comments import find_tagged

if TYPE_CHECKING:
    from prcommenter.models import Comment
    from prcommenter.store import CommentStore

logger = logging.getLogger(__name__)


async def list_review_comments(store: CommentStore, pull_number: int, page_size: int) -> list[Comment]:
    """List every review comment on a pull request, possibly truncated by a failed page."""
    return await collect_pages(
        "list review comments",
        lambda page, per_page: store.list_review_comments(pull_number, page, per_page),
        page_size,
    )


async def get_comments_at_line(
    store: CommentStore,
    pull_number: int,
    path: str,
    line: int,
    page_size: int,
) -> list[Comment]:
    """Non-empty review comments currently anchored at ``path``/``line``."""
    comments = await list_review_comments(store, pull_number, page_size)
    return [c for c in comments if c.path == path and c.line == line and c.body != ""]


async def review_comment(  # noqa: PLR0913, PLR0917
    store: CommentStore,
    pull_number: int,
    commit_id: str,
    path: str,
    line: int,
    message: str,
    tag: CommentTag | str = CommentTag.COMMENT,
    *,
    greeting: str,
    page_size: int,
) -> Comment | None:
    """Update the tagged review comment at ``path``/``line``, or create one.

    Anchors are looked up afresh on every call: GitHub re-anchors review
    comments as the diff moves between pushes.
    """
    body = build_body(message, tag, greeting)
    existing = find_tagged(await get_comments_at_line(store, pull_number, path, line, page_size), tag)
    if existing is not None:
        logger.debug("Updating review comment %d at %s:%d", existing.id, path, line)
        return await safe_call("update review comment", store.update_review_comment, existing.id, body)

    return await safe_call(
        "create review comment",
        store.create_review_comment,
        pull_number,
        body,
        commit_id,
        path,
        line,
    )


async def review_comment_reply(
    store: CommentStore,
    pull_number: int,
    top_level_comment: Comment,
    message: str,
    *,
    greeting: str,
) -> Comment | None:
    """Reply to a top-level review comment and mark its thread as replied.

    If the top-level comment carries the general comment tag, its tag is
    swapped for the reply tag. That update is attempted whether or not the
    reply itself succeeded.

    Returns:
        The reply comment, or ``None`` if posting the reply failed.
    """
    reply = await safe_call(
        "reply to review comment",
        store.create_review_comment_reply,
        pull_number,
        top_level_comment.id,
        build_body(message, CommentTag.REPLY, greeting),
    )

    if CommentTag.COMMENT.value in top_level_comment.body:
        new_body = top_level_comment.body.replace(CommentTag.COMMENT.value, CommentTag.REPLY.value, 1)
        await safe_call(
            "update top-level review comment",
            store.update_review_comment,
            top_level_comment.id,
            new_body,
        )

    return reply
