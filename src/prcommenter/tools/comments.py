"""Create, replace, append to, or prepend to a tagged issue comment."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcommenter.github_api import safe_call
from prcommenter.models import Comment, CommentMode
from prcommenter.pagination import collect_pages
from prcommenter.tags import CommentTag, as_marker, build_body

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prcommenter.store import CommentStore

logger = logging.getLogger(__name__)


def find_tagged(comments: Iterable[Comment], tag: CommentTag | str) -> Comment | None:
    """Return the first comment whose body contains *tag*, in the order given.

    Later matches are ignored, not merged or deleted.
    """
    marker = as_marker(tag)
    return next((c for c in comments if marker in c.body), None)


def merge_body(existing: str, body: str, mode: CommentMode) -> str:
    """Combine an existing comment body with a new canonical body."""
    if mode == CommentMode.APPEND:
        return f"{existing}\n{body}"
    if mode == CommentMode.PREPEND:
        return f"{body}\n{existing}"
    return body


async def list_comments(store: CommentStore, target: int, page_size: int) -> list[Comment]:
    """List every comment on *target*, possibly truncated by a failed page."""
    return await collect_pages(
        "list issue comments",
        lambda page, per_page: store.list_issue_comments(target, page, per_page),
        page_size,
    )


async def find_comment_with_tag(
    store: CommentStore,
    tag: CommentTag | str,
    target: int,
    page_size: int,
) -> Comment | None:
    return find_tagged(await list_comments(store, target, page_size), tag)


async def create_comment(store: CommentStore, body: str, target: int) -> Comment | None:
    return await safe_call("create issue comment", store.create_issue_comment, target, body)


async def reconcile_comment(  # noqa: PLR0913
    store: CommentStore,
    target: int,
    message: str,
    tag: CommentTag | str = CommentTag.COMMENT,
    mode: CommentMode | str = CommentMode.REPLACE,
    *,
    greeting: str,
    page_size: int,
) -> Comment | None:
    """Write *message* to *target* according to *mode*.

    ``create`` always posts a new comment. ``replace``, ``append`` and
    ``prepend`` look for the first comment carrying *tag* and update it, or
    post a new one if none is found. Unknown modes behave like ``replace``.
    Exactly one write is issued.

    Returns:
        The written comment, or ``None`` if the write failed.
    """
    resolved, recognized = CommentMode.parse(mode)
    if not recognized:
        logger.warning('Unknown mode: %s, using "replace"', mode)

    body = build_body(message, tag, greeting)
    if resolved == CommentMode.CREATE:
        return await create_comment(store, body, target)

    existing = await find_comment_with_tag(store, tag, target, page_size)
    if existing is None:
        return await create_comment(store, body, target)

    logger.debug("Updating comment %d on #%d (%s)", existing.id, target, resolved)
    return await safe_call(
        "update issue comment",
        store.update_issue_comment,
        existing.id,
        merge_body(existing.body, body, resolved),
    )
