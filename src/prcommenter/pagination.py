"""Drain a page-numbered listing endpoint into one list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from prcommenter.github_api import safe_call

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def collect_pages(
    action: str,
    fetch_page: Callable[[int, int], Awaitable[list[T]]],
    page_size: int,
) -> list[T]:
    """Fetch pages 1, 2, ... until a short page or a failed fetch.

    Pages are requested strictly one after another. A failed page ends the
    listing and the items gathered so far are returned as-is, so callers
    must tolerate a truncated view. Failures are not retried.

    Args:
        action: Description used in the warning logged on failure.
        fetch_page: ``fetch_page(page, per_page)`` returning one page of items.
        page_size: Items per page; a page shorter than this is the last one.
    """
    if page_size < 1:
        msg = f"page_size must be at least 1, got {page_size}"
        raise ValueError(msg)
    items: list[T] = []
    page = 1
    while True:
        batch = await safe_call(action, fetch_page, page, page_size)
        if batch is None:
            logger.debug("Listing stopped at page %d with %d item(s)", page, len(items))
            break
        items.extend(batch)
        if len(batch) < page_size:
            break
        page += 1
    return items
