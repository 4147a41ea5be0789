"""Pydantic models for prcommenter."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class CommentMode(StrEnum):
    """How a new message is reconciled with an existing tagged comment."""

    CREATE = "create"
    REPLACE = "replace"
    APPEND = "append"
    PREPEND = "prepend"

    @classmethod
    def parse(cls, value: CommentMode | str) -> tuple[CommentMode, bool]:
        """Return ``(mode, recognized)``; unknown values fall back to ``replace``."""
        try:
            return cls(value), True
        except ValueError:
            return cls.REPLACE, False


class Comment(BaseModel):
    """An issue comment or pull request review comment."""

    id: int = Field(description="Store-assigned comment ID")
    author: str = Field(default="", description="GitHub username of the comment author")
    body: str = Field(default="", description="Comment body text")
    path: str | None = Field(default=None, description="File path for review comments")
    line: int | None = Field(default=None, description="Line number for review comments")
    in_reply_to_id: int | None = Field(default=None, description="ID of the comment this one replies to")
    commit_id: str | None = Field(default=None, description="Commit the review comment is anchored to")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Comment:
        """Build a Comment from a GitHub REST payload."""
        return cls(
            id=data["id"],
            author=(data.get("user") or {}).get("login", ""),
            body=data.get("body") or "",
            path=data.get("path"),
            line=data.get("line"),
            in_reply_to_id=data.get("in_reply_to_id"),
            commit_id=data.get("commit_id"),
        )


class ChainEntry(BaseModel):
    """One message in a review conversation."""

    author: str
    body: str


class ConversationChain(BaseModel):
    """A review thread flattened to its root comment plus direct replies."""

    entries: list[ChainEntry] = Field(default_factory=list, description="Root first, then replies in listing order")
    top_level_comment: Comment = Field(description="Root comment of the thread")

    def render(self) -> str:
        """Render as ``author: body`` blocks separated by ``---`` lines."""
        return "\n---\n".join(f"{e.author}: {e.body}" for e in self.entries)
