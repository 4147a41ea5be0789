"""Hidden markers that identify comments prcommenter wrote.

The marker strings are wire-visible: they are embedded verbatim in comment
bodies already posted on GitHub, so they must never change.
"""

from __future__ import annotations

from enum import StrEnum

COMMENT_GREETING = ":robot: OpenAI"


class CommentTag(StrEnum):
    """Logical comment classes, valued by their hidden HTML marker."""

    COMMENT = "<!-- This is an auto-generated comment by OpenAI -->"
    REPLY = "<!-- This is an auto-generated reply by OpenAI -->"
    SUMMARIZE = "<!-- This is an auto-generated comment: summarize by openai -->"
    DESCRIPTION = "<!-- This is an auto-generated comment: release notes by openai -->"
    DESCRIPTION_END = "<!-- end of auto-generated comment: release notes by openai -->"


# Short names accepted on the command line
TAG_ALIASES: dict[str, CommentTag] = {
    "general": CommentTag.COMMENT,
    "comment": CommentTag.COMMENT,
    "reply": CommentTag.REPLY,
    "summarize": CommentTag.SUMMARIZE,
}


def as_marker(tag: CommentTag | str) -> str:
    """Return the marker string for *tag*.

    Raw strings pass through unchanged so markers written by other tools
    (or older versions) can still be matched.
    """
    return str(tag.value) if isinstance(tag, CommentTag) else tag


def build_body(message: str, tag: CommentTag | str = CommentTag.COMMENT, greeting: str = COMMENT_GREETING) -> str:
    """Build the canonical comment body: greeting, message, then the tag."""
    return f"{greeting}\n\n{message}\n\n{as_marker(tag)}"
