"""Entry points used by workflows to post and maintain prcommenter output.

Every public method returns the written comment (or description) or ``None``.
Remote failures are logged as warnings and never raised, so a failed
comment never fails the build.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prcommenter.github_api import GitHubCommentStore
from prcommenter.models import CommentMode
from prcommenter.tags import CommentTag
from prcommenter.tools import comments, conversation, descriptions, review_comments

if TYPE_CHECKING:
    from prcommenter.config import Config
    from prcommenter.models import Comment, ConversationChain
    from prcommenter.store import CommentStore

logger = logging.getLogger(__name__)


class Commenter:
    """Comment reconciliation bound to one repository and configuration.

    Args:
        config: Effective configuration. Supplies the default target number,
            greeting line and listing page size.
        store: Remote comment store. Defaults to a :class:`GitHubCommentStore`
            built from *config*, which is closed by :meth:`aclose`.
    """

    def __init__(self, config: Config, store: CommentStore | None = None) -> None:
        self.config = config
        self._owns_store = store is None
        self.store: CommentStore = store if store is not None else GitHubCommentStore(config)

    async def __aenter__(self) -> Commenter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_store:
            await self.store.aclose()

    def _target_number(self, target: int | None) -> int | None:
        number = target if target is not None else self.config.target_number
        if number is None:
            logger.warning("Skipped: no pull_request or issue found in context.")
        return number

    # -- Issue / PR comments -------------------------------------------------

    async def comment(
        self,
        message: str,
        tag: CommentTag | str = CommentTag.COMMENT,
        mode: CommentMode | str = CommentMode.REPLACE,
        *,
        target: int | None = None,
    ) -> Comment | None:
        """Create, replace, append to, or prepend to the comment carrying *tag*.

        Args:
            message: Comment text; wrapped with the greeting and *tag*.
            tag: Marker identifying which logical comment to reconcile.
            mode: ``create``, ``replace``, ``append`` or ``prepend``.
            target: Issue or PR number; defaults to the triggering event's.
        """
        number = self._target_number(target)
        if number is None:
            return None
        return await comments.reconcile_comment(
            self.store,
            number,
            message,
            tag,
            mode,
            greeting=self.config.greeting,
            page_size=self.config.page_size,
        )

    async def list_comments(self, target: int) -> list[Comment]:
        return await comments.list_comments(self.store, target, self.config.page_size)

    async def find_comment_with_tag(self, tag: CommentTag | str, target: int) -> Comment | None:
        return await comments.find_comment_with_tag(self.store, tag, target, self.config.page_size)

    # -- PR description ------------------------------------------------------

    async def update_description(self, pull_number: int, message: str) -> str | None:
        """Insert or refresh the release-notes block in a PR description."""
        return await descriptions.update_description(self.store, pull_number, message)

    # -- Review comments -----------------------------------------------------

    async def review_comment(  # noqa: PLR0913, PLR0917
        self,
        pull_number: int,
        commit_id: str,
        path: str,
        line: int,
        message: str,
        tag: CommentTag | str = CommentTag.COMMENT,
    ) -> Comment | None:
        """Update or create the tagged review comment on ``path``/``line``."""
        return await review_comments.review_comment(
            self.store,
            pull_number,
            commit_id,
            path,
            line,
            message,
            tag,
            greeting=self.config.greeting,
            page_size=self.config.page_size,
        )

    async def review_comment_reply(self, pull_number: int, top_level_comment: Comment, message: str) -> Comment | None:
        """Reply in the thread rooted at *top_level_comment*."""
        return await review_comments.review_comment_reply(
            self.store,
            pull_number,
            top_level_comment,
            message,
            greeting=self.config.greeting,
        )

    async def list_review_comments(self, pull_number: int) -> list[Comment]:
        return await review_comments.list_review_comments(self.store, pull_number, self.config.page_size)

    async def get_comments_at_line(self, pull_number: int, path: str, line: int) -> list[Comment]:
        return await review_comments.get_comments_at_line(self.store, pull_number, path, line, self.config.page_size)

    async def get_conversation_chain(self, pull_number: int, comment: Comment) -> ConversationChain:
        """Return the flattened thread *comment* belongs to, and its root."""
        return await conversation.get_conversation_chain(self.store, pull_number, comment, self.config.page_size)
