"""Tests for the httpx-based GitHub comment store."""

from __future__ import annotations

import json

import httpx
import pytest
import respx
from httpx import Response

from prcommenter.config import Config
from prcommenter.github_api import (
    _HTTP_FORBIDDEN,
    _HTTP_UNAUTHORIZED,
    GitHubAuthError,
    GitHubCommentStore,
    GitHubError,
    _raise_for_status,
    safe_call,
)

BASE = "https://api.github.com/repos/owner/repo"


@pytest.fixture
async def gh_store():
    store = GitHubCommentStore(Config(token="tok_test", repo="owner/repo"))
    yield store
    await store.aclose()


# ---------------------------------------------------------------------------
# Error types
# ---------------------------------------------------------------------------


class TestGitHubAuthError:
    def test_default_message_mentions_token(self):
        assert "GH_TOKEN" in str(GitHubAuthError())

    def test_detail_prepended(self):
        err = GitHubAuthError("Access denied")
        assert str(err).startswith("Access denied")

    def test_status_code_is_401(self):
        assert GitHubAuthError().status_code == _HTTP_UNAUTHORIZED


# ---------------------------------------------------------------------------
# _raise_for_status
# ---------------------------------------------------------------------------


class TestRaiseForStatus:
    def test_success_does_not_raise(self):
        _raise_for_status(Response(200))

    def test_401_raises_auth_error(self):
        with pytest.raises(GitHubAuthError):
            _raise_for_status(Response(401))

    def test_403_rate_limit_raises_github_error(self):
        with pytest.raises(GitHubError, match="rate limit") as excinfo:
            _raise_for_status(Response(403, json={"message": "API rate limit exceeded for ..."}))
        assert not isinstance(excinfo.value, GitHubAuthError)
        assert excinfo.value.status_code == _HTTP_FORBIDDEN

    def test_403_forbidden_raises_auth_error(self):
        with pytest.raises(GitHubAuthError, match="forbidden"):
            _raise_for_status(Response(403, json={"message": "Resource not accessible by integration"}))

    def test_500_raises_github_error(self):
        with pytest.raises(GitHubError, match="500"):
            _raise_for_status(Response(500, json={"message": "Internal Server Error"}))

    def test_non_json_body_uses_text(self):
        with pytest.raises(GitHubError, match="Unprocessable"):
            _raise_for_status(Response(422, text="Unprocessable"))


# ---------------------------------------------------------------------------
# safe_call
# ---------------------------------------------------------------------------


class TestSafeCall:
    async def test_returns_result(self):
        async def ok(x: int) -> int:
            return x * 2

        assert await safe_call("double", ok, 2) == 4

    async def test_github_error_becomes_none(self, caplog):
        async def fail() -> int:
            msg = "GitHub API error 502: bad gateway"
            raise GitHubError(msg, status_code=502)

        assert await safe_call("do the thing", fail) is None
        assert "Failed to do the thing: GitHub API error 502" in caplog.text

    async def test_transport_error_becomes_none(self, caplog):
        async def fail() -> int:
            raise httpx.ConnectError("connection refused")

        assert await safe_call("connect", fail) is None
        assert "Failed to connect" in caplog.text


# ---------------------------------------------------------------------------
# GitHubCommentStore
# ---------------------------------------------------------------------------


class TestGitHubCommentStore:
    @respx.mock
    async def test_list_issue_comments(self, gh_store):
        route = respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(
            return_value=Response(200, json=[{"id": 1, "body": "hi", "user": {"login": "alice"}}]),
        )
        result = await gh_store.list_issue_comments(42, 2, 100)

        assert [(c.id, c.author, c.body) for c in result] == [(1, "alice", "hi")]
        request = route.calls.last.request
        assert request.url.params["page"] == "2"
        assert request.url.params["per_page"] == "100"
        assert request.headers["Authorization"] == "Bearer tok_test"
        assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"

    @respx.mock
    async def test_null_body_becomes_empty_string(self, gh_store):
        respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(
            return_value=Response(200, json=[{"id": 1, "body": None, "user": None}]),
        )
        result = await gh_store.list_issue_comments(42, 1, 100)
        assert result[0].body == ""
        assert result[0].author == ""

    @respx.mock
    async def test_create_issue_comment(self, gh_store):
        route = respx.post(f"{BASE}/issues/42/comments").mock(
            return_value=Response(201, json={"id": 9, "body": "hello", "user": {"login": "bot"}}),
        )
        result = await gh_store.create_issue_comment(42, "hello")
        assert result.id == 9
        assert json.loads(route.calls.last.request.content) == {"body": "hello"}

    @respx.mock
    async def test_update_issue_comment(self, gh_store):
        route = respx.patch(f"{BASE}/issues/comments/9").mock(
            return_value=Response(200, json={"id": 9, "body": "edited"}),
        )
        result = await gh_store.update_issue_comment(9, "edited")
        assert result.body == "edited"
        assert json.loads(route.calls.last.request.content) == {"body": "edited"}

    @respx.mock
    async def test_list_review_comments_parses_anchor(self, gh_store):
        respx.get(url__startswith=f"{BASE}/pulls/42/comments").mock(
            return_value=Response(
                200,
                json=[
                    {
                        "id": 5,
                        "body": "nit",
                        "user": {"login": "bob"},
                        "path": "a.py",
                        "line": 12,
                        "in_reply_to_id": 4,
                        "commit_id": "abc",
                    }
                ],
            ),
        )
        [comment] = await gh_store.list_review_comments(42, 1, 100)
        assert (comment.path, comment.line, comment.in_reply_to_id, comment.commit_id) == ("a.py", 12, 4, "abc")

    @respx.mock
    async def test_create_review_comment(self, gh_store):
        route = respx.post(f"{BASE}/pulls/42/comments").mock(
            return_value=Response(201, json={"id": 7, "body": "b", "path": "a.py", "line": 3}),
        )
        await gh_store.create_review_comment(42, "b", "abc", "a.py", 3)
        assert json.loads(route.calls.last.request.content) == {
            "body": "b",
            "commit_id": "abc",
            "path": "a.py",
            "line": 3,
        }

    @respx.mock
    async def test_update_review_comment(self, gh_store):
        route = respx.patch(f"{BASE}/pulls/comments/7").mock(return_value=Response(200, json={"id": 7, "body": "b2"}))
        result = await gh_store.update_review_comment(7, "b2")
        assert result.body == "b2"
        assert route.called

    @respx.mock
    async def test_create_review_comment_reply(self, gh_store):
        route = respx.post(f"{BASE}/pulls/42/comments/7/replies").mock(
            return_value=Response(201, json={"id": 8, "body": "r", "in_reply_to_id": 7}),
        )
        result = await gh_store.create_review_comment_reply(42, 7, "r")
        assert result.in_reply_to_id == 7
        assert json.loads(route.calls.last.request.content) == {"body": "r"}

    @respx.mock
    async def test_get_and_update_pull_body(self, gh_store):
        respx.get(f"{BASE}/pulls/42").mock(return_value=Response(200, json={"number": 42, "body": None}))
        route = respx.patch(f"{BASE}/pulls/42").mock(return_value=Response(200, json={"number": 42, "body": "new"}))

        assert await gh_store.get_pull_body(42) == ""
        assert await gh_store.update_pull_body(42, "new") == "new"
        assert json.loads(route.calls.last.request.content) == {"body": "new"}

    @respx.mock
    async def test_http_error_raises(self, gh_store):
        respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(return_value=Response(404, json={"message": "Not Found"}))
        with pytest.raises(GitHubError, match="404"):
            await gh_store.list_issue_comments(42, 1, 100)

    async def test_missing_token_raises_auth_error(self):
        async with GitHubCommentStore(Config(repo="owner/repo")) as store:
            with pytest.raises(GitHubAuthError):
                await store.list_issue_comments(42, 1, 100)

    @respx.mock
    async def test_custom_api_url(self):
        route = respx.get("https://ghe.example.com/api/v3/repos/o/r/pulls/1").mock(
            return_value=Response(200, json={"body": "x"}),
        )
        config = Config(token="t", repo="o/r", api_url="https://ghe.example.com/api/v3/")
        async with GitHubCommentStore(config) as store:
            assert await store.get_pull_body(1) == "x"
        assert route.called

    async def test_injected_client_is_not_closed(self):
        client = httpx.AsyncClient()
        store = GitHubCommentStore(Config(token="t", repo="o/r"), client=client)
        await store.aclose()
        assert not client.is_closed
        await client.aclose()


class TestEndToEnd:
    @respx.mock
    async def test_replace_over_http(self):
        from prcommenter.commenter import Commenter
        from prcommenter.tags import CommentTag, build_body

        tagged = build_body("old")
        respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(
            return_value=Response(
                200,
                json=[
                    {"id": 1, "body": "human", "user": {"login": "alice"}},
                    {"id": 2, "body": tagged, "user": {"login": "bot"}},
                ],
            ),
        )
        patch = respx.patch(f"{BASE}/issues/comments/2").mock(
            return_value=Response(200, json={"id": 2, "body": build_body("new")}),
        )

        config = Config(token="tok_test", repo="owner/repo", pull_number=42)
        async with Commenter(config) as commenter:
            result = await commenter.comment("new", CommentTag.COMMENT, "replace")

        assert result.id == 2
        assert json.loads(patch.calls.last.request.content) == {"body": build_body("new")}
        assert len(respx.calls) == 2

    @respx.mock
    async def test_server_error_is_absorbed(self, caplog):
        from prcommenter.commenter import Commenter

        respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(return_value=Response(200, json=[]))
        respx.post(f"{BASE}/issues/42/comments").mock(return_value=Response(500, json={"message": "oops"}))

        async with Commenter(Config(token="tok_test", repo="owner/repo", pull_number=42)) as commenter:
            assert await commenter.comment("hello") is None
        assert "Failed to create issue comment" in caplog.text

    @respx.mock
    async def test_non_json_listing_is_absorbed(self, caplog):
        from prcommenter.commenter import Commenter

        respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(
            return_value=Response(200, text="<html>maintenance</html>"),
        )
        respx.post(f"{BASE}/issues/42/comments").mock(
            return_value=Response(201, json={"id": 9, "body": "hi"}),
        )

        async with Commenter(Config(token="tok_test", repo="owner/repo", pull_number=42)) as commenter:
            result = await commenter.comment("hi")
        assert result.id == 9
        assert "Failed to list issue comments" in caplog.text
        assert "non-JSON" in caplog.text

    @respx.mock
    async def test_comment_payload_without_id_is_absorbed(self, caplog):
        from prcommenter.commenter import Commenter

        respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(return_value=Response(200, json=[]))
        respx.post(f"{BASE}/issues/42/comments").mock(return_value=Response(201, json={"message": "accepted"}))

        async with Commenter(Config(token="tok_test", repo="owner/repo", pull_number=42)) as commenter:
            assert await commenter.comment("hi") is None
        assert "Failed to create issue comment" in caplog.text
        assert "Unexpected comment payload" in caplog.text


class TestMalformedResponses:
    @respx.mock
    async def test_non_json_body_raises_github_error(self, gh_store):
        respx.get(url__startswith=f"{BASE}/pulls/42/comments").mock(return_value=Response(200, text="oops"))
        with pytest.raises(GitHubError, match="non-JSON"):
            await gh_store.list_review_comments(42, 1, 100)

    @respx.mock
    async def test_listing_that_is_not_a_list_raises_github_error(self, gh_store):
        respx.get(url__startswith=f"{BASE}/issues/42/comments").mock(
            return_value=Response(200, json={"message": "weird"}),
        )
        with pytest.raises(GitHubError, match="list of comments"):
            await gh_store.list_issue_comments(42, 1, 100)

    @respx.mock
    async def test_comment_with_bad_id_raises_github_error(self, gh_store):
        respx.patch(f"{BASE}/pulls/comments/7").mock(return_value=Response(200, json={"id": "seven"}))
        with pytest.raises(GitHubError, match="Unexpected comment payload"):
            await gh_store.update_review_comment(7, "x")

    @respx.mock
    async def test_pull_that_is_not_an_object_raises_github_error(self, gh_store):
        respx.get(f"{BASE}/pulls/42").mock(return_value=Response(200, json=["nope"]))
        with pytest.raises(GitHubError, match="pull request object"):
            await gh_store.get_pull_body(42)
