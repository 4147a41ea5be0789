"""Resolve a review comment to its thread root and flatten the conversation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcommenter.models import ChainEntry, Comment, ConversationChain
from prcommenter.tools.review_comments import list_review_comments

if TYPE_CHECKING:
    from prcommenter.store import CommentStore

logger = logging.getLogger(__name__)


def find_top_level(comments: list[Comment], comment: Comment) -> Comment:
    """Follow ``in_reply_to_id`` links upward from *comment* to the thread root.

    The walk stops at a comment with no parent, at a parent missing from
    *comments* (a dangling or truncated reference), or after
    ``len(comments) + 1`` steps so a corrupted reply cycle cannot loop forever.
    """
    by_id = {c.id: c for c in reversed(comments)}
    top = comment
    for _ in range(len(comments) + 1):
        if top.in_reply_to_id is None:
            return top
        parent = by_id.get(top.in_reply_to_id)
        if parent is None:
            logger.debug("Parent %d of comment %d not listed; treating it as root", top.in_reply_to_id, top.id)
            return top
        top = parent
    logger.warning("Reply chain from comment %d did not terminate; stopping at %d", comment.id, top.id)
    return top


def compose_chain(comments: list[Comment], top: Comment) -> list[ChainEntry]:
    """Root first, then every direct reply to the root in listing order."""
    entries = [ChainEntry(author=top.author, body=top.body)]
    entries.extend(ChainEntry(author=c.author, body=c.body) for c in comments if c.in_reply_to_id == top.id)
    return entries


async def get_conversation_chain(
    store: CommentStore,
    pull_number: int,
    comment: Comment,
    page_size: int,
) -> ConversationChain:
    """Build the conversation for the thread *comment* belongs to. Read-only."""
    comments = await list_review_comments(store, pull_number, page_size)
    top = find_top_level(comments, comment)
    return ConversationChain(entries=compose_chain(comments, top), top_level_comment=top)
