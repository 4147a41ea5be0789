"""GitHub REST implementation of the comment store, built on httpx."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import ValidationError

from prcommenter.models import Comment
from prcommenter.store import CommentStore

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from prcommenter.config import Config

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Error types
# ---------------------------------------------------------------------------


class GitHubError(Exception):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(GitHubError):
    """Raised when GitHub authentication fails or no token is available."""

    def __init__(self, detail: str = "") -> None:
        msg = "GitHub token not found. Pass --token or set GH_TOKEN / GITHUB_TOKEN."
        if detail:
            msg = f"{detail}\n{msg}"
        super().__init__(msg, status_code=401)


# ---------------------------------------------------------------------------
# Failure absorption
# ---------------------------------------------------------------------------


async def safe_call(action: str, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T | None:
    """Await ``fn(*args, **kwargs)``, turning remote failures into ``None``.

    The failure is logged as a warning naming *action*. No retry is attempted.
    """
    try:
        return await fn(*args, **kwargs)
    except (GitHubError, httpx.HTTPError) as exc:
        logger.warning("Failed to %s: %s", action, exc)
        return None


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------

_HTTP_UNAUTHORIZED = 401
_HTTP_FORBIDDEN = 403


def _raise_for_status(response: httpx.Response) -> None:
    """Raise appropriate :exc:`GitHubError` subclass for non-2xx responses."""
    if response.is_success:
        return

    if response.status_code == _HTTP_UNAUTHORIZED:
        raise GitHubAuthError("GitHub rejected the token (401)")

    try:
        body = response.json()
    except ValueError:
        body = None
    msg = body.get("message", response.text) if isinstance(body, dict) else response.text

    if response.status_code == _HTTP_FORBIDDEN:
        if "rate limit" in msg.lower():
            msg = f"GitHub API rate limit exceeded: {msg}"
            raise GitHubError(msg, status_code=_HTTP_FORBIDDEN)
        msg = f"GitHub API access forbidden: {msg}"
        raise GitHubAuthError(msg)

    msg = f"GitHub API error {response.status_code}: {msg}"
    raise GitHubError(msg, status_code=response.status_code)


def _decode_json(response: httpx.Response) -> Any:
    """Decode a successful response, raising :exc:`GitHubError` for a non-JSON body."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        msg = f"GitHub API returned a non-JSON body ({response.status_code}): {response.text[:200]}"
        raise GitHubError(msg, status_code=response.status_code) from exc


def _to_comment(data: Any) -> Comment:
    """Parse one comment payload, raising :exc:`GitHubError` if it is malformed."""
    try:
        return Comment.from_api(data)
    except (KeyError, TypeError, AttributeError, ValidationError) as exc:
        msg = f"Unexpected comment payload from GitHub: {data!r:.200}"
        raise GitHubError(msg) from exc


def _to_comments(data: Any) -> list[Comment]:
    if data is None:
        return []
    if not isinstance(data, list):
        msg = f"Expected a list of comments from GitHub, got {type(data).__name__}"
        raise GitHubError(msg)
    return [_to_comment(item) for item in data]


def _pull_body(data: Any, default: str) -> str:
    if data is None:
        return default
    if not isinstance(data, dict):
        msg = f"Expected a pull request object from GitHub, got {type(data).__name__}"
        raise GitHubError(msg)
    return data.get("body") or default


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class GitHubCommentStore(CommentStore):
    """Comment store backed by the GitHub REST API.

    One instance is bound to a single repository. Every call hits the API;
    nothing is cached between calls, since review comments can be re-anchored
    or edited by others at any time.
    """

    def __init__(self, config: Config, client: httpx.AsyncClient | None = None) -> None:
        owner, repo = config.owner_repo
        self._repo_url = f"{config.api_url.rstrip('/')}/repos/{owner}/{repo}"
        self._token = config.token
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def __aenter__(self) -> GitHubCommentStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self._token:
            raise GitHubAuthError
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Make a single REST request against the bound repository."""
        url = f"{self._repo_url}{endpoint}"
        logger.debug("%s %s", method, url)
        response = await self._client.request(method, url, headers=self._headers(), params=params, json=json_body)
        _raise_for_status(response)
        return _decode_json(response)

    # -- Issue comments ------------------------------------------------------

    async def list_issue_comments(self, number: int, page: int, per_page: int) -> list[Comment]:
        data = await self._request(
            "GET", f"/issues/{number}/comments", params={"page": page, "per_page": per_page}
        )
        return _to_comments(data)

    async def create_issue_comment(self, number: int, body: str) -> Comment:
        data = await self._request("POST", f"/issues/{number}/comments", json_body={"body": body})
        return _to_comment(data)

    async def update_issue_comment(self, comment_id: int, body: str) -> Comment:
        data = await self._request("PATCH", f"/issues/comments/{comment_id}", json_body={"body": body})
        return _to_comment(data)

    # -- Review comments -----------------------------------------------------

    async def list_review_comments(self, pull_number: int, page: int, per_page: int) -> list[Comment]:
        data = await self._request(
            "GET", f"/pulls/{pull_number}/comments", params={"page": page, "per_page": per_page}
        )
        return _to_comments(data)

    async def create_review_comment(  # noqa: PLR0913
        self,
        pull_number: int,
        body: str,
        commit_id: str,
        path: str,
        line: int,
    ) -> Comment:
        data = await self._request(
            "POST",
            f"/pulls/{pull_number}/comments",
            json_body={"body": body, "commit_id": commit_id, "path": path, "line": line},
        )
        return _to_comment(data)

    async def update_review_comment(self, comment_id: int, body: str) -> Comment:
        data = await self._request("PATCH", f"/pulls/comments/{comment_id}", json_body={"body": body})
        return _to_comment(data)

    async def create_review_comment_reply(self, pull_number: int, comment_id: int, body: str) -> Comment:
        data = await self._request(
            "POST", f"/pulls/{pull_number}/comments/{comment_id}/replies", json_body={"body": body}
        )
        return _to_comment(data)

    # -- Pull request description --------------------------------------------

    async def get_pull_body(self, pull_number: int) -> str:
        data = await self._request("GET", f"/pulls/{pull_number}")
        return _pull_body(data, "")

    async def update_pull_body(self, pull_number: int, body: str) -> str:
        data = await self._request("PATCH", f"/pulls/{pull_number}", json_body={"body": body})
        return _pull_body(data, body)
