"""Keep a generated release-notes block inside a pull request description."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcommenter.github_api import safe_call
from prcommenter.tags import CommentTag

if TYPE_CHECKING:
    from prcommenter.store import CommentStore

logger = logging.getLogger(__name__)


def build_block(payload: str, start: str = CommentTag.DESCRIPTION.value, end: str = CommentTag.DESCRIPTION_END.value) -> str:
    return f"{start}\n{payload}\n{end}"


def splice_description(
    existing: str,
    payload: str,
    start: str = CommentTag.DESCRIPTION.value,
    end: str = CommentTag.DESCRIPTION_END.value,
) -> str:
    """Insert or replace the ``start``...``end`` block in *existing*.

    The first span running from a start marker through the next end marker
    is replaced; text outside it is left byte-for-byte intact. If no such
    span exists, the block is appended after a newline.
    """
    block = build_block(payload, start, end)
    start_idx = existing.find(start)
    end_idx = existing.find(end, start_idx + len(start)) if start_idx >= 0 else -1
    if start_idx >= 0 and end_idx >= 0:
        return existing[:start_idx] + block + existing[end_idx + len(end) :]
    return f"{existing}\n{block}"


async def update_description(store: CommentStore, pull_number: int, message: str) -> str | None:
    """Splice *message* into the pull request description.

    This is a plain read-modify-write: edits made by someone else between the
    read and the write survive only if they are outside the spliced block.

    An unchanged description is not written back.

    Returns:
        The resulting description, or ``None`` if reading or writing failed.
    """
    current = await safe_call("get PR", store.get_pull_body, pull_number)
    if current is None:
        return None

    new_body = splice_description(current, message)
    if new_body == current:
        logger.debug("Description of #%d already up to date", pull_number)
        return current
    return await safe_call("update PR description", store.update_pull_body, pull_number, new_body)
