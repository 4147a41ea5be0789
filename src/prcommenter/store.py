"""Abstract interface to the remote comment store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prcommenter.models import Comment


class CommentStore(ABC):
    """Paginated CRUD over issue comments and pull request review comments.

    Implementations raise :exc:`prcommenter.github_api.GitHubError` on any
    failed call. Callers decide whether a failure is fatal; the engine wraps
    every call with :func:`prcommenter.github_api.safe_call`.
    """

    @abstractmethod
    async def list_issue_comments(self, number: int, page: int, per_page: int) -> list[Comment]:
        """Return one page of comments on an issue or pull request, oldest first."""

    @abstractmethod
    async def create_issue_comment(self, number: int, body: str) -> Comment:
        """Post a new comment on an issue or pull request."""

    @abstractmethod
    async def update_issue_comment(self, comment_id: int, body: str) -> Comment:
        """Overwrite the body of an existing issue comment."""

    @abstractmethod
    async def list_review_comments(self, pull_number: int, page: int, per_page: int) -> list[Comment]:
        """Return one page of review comments on a pull request, oldest first."""

    @abstractmethod
    async def create_review_comment(  # noqa: PLR0913
        self,
        pull_number: int,
        body: str,
        commit_id: str,
        path: str,
        line: int,
    ) -> Comment:
        """Post a review comment anchored to ``path``/``line`` at ``commit_id``."""

    @abstractmethod
    async def update_review_comment(self, comment_id: int, body: str) -> Comment:
        """Overwrite the body of a review comment, keeping its anchor."""

    @abstractmethod
    async def create_review_comment_reply(self, pull_number: int, comment_id: int, body: str) -> Comment:
        """Reply to a top-level review comment."""

    @abstractmethod
    async def get_pull_body(self, pull_number: int) -> str:
        """Return the pull request description (empty string when unset)."""

    @abstractmethod
    async def update_pull_body(self, pull_number: int, body: str) -> str:
        """Replace the pull request description and return the stored body."""

    async def aclose(self) -> None:  # noqa: B027
        """Release any resources held by the store."""
