"""CLI for prcommenter, built on cyclopts."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import TYPE_CHECKING, Any, TypeVar

import cyclopts

from prcommenter.commenter import Commenter
from prcommenter.config import Config, ConfigError, load_config
from prcommenter.tags import TAG_ALIASES, CommentTag

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

app = cyclopts.App(
    name="prcommenter",
    help="prcommenter: keep generated comments on GitHub pull requests up to date.",
)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

_WORKFLOW_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def _escape_workflow_data(text: str) -> str:
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands (``::warning::...``).

    Levels without a matching command (INFO) are printed as plain text.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _WORKFLOW_COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape_workflow_data(message)}"


def setup_logging(*, verbose: bool = False, environ: dict[str, str] | None = None) -> None:
    """Attach a stderr handler to the ``prcommenter`` logger."""
    env = os.environ if environ is None else environ
    handler = logging.StreamHandler(sys.stderr)
    if env.get("GITHUB_ACTIONS") == "true":
        handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    root = logging.getLogger("prcommenter")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_MASK_MIN_LENGTH = 4


def _mask_value(value: str | None) -> str:
    """Mask a secret, keeping two characters at each end."""
    if not value:
        return "(not set)"
    if len(value) > _MASK_MIN_LENGTH:
        return value[:2] + "*" * (len(value) - _MASK_MIN_LENGTH) + value[-2:]
    return "****"


def _parse_tag(name: str) -> CommentTag | str:
    """Map a CLI tag name (``general``, ``reply``, ``summarize``) or raw marker to a tag."""
    tag = TAG_ALIASES.get(name.lower())
    if tag is not None:
        return tag
    if name.startswith("<!--"):
        return name
    msg = f"Unknown tag {name!r}. Use one of: {', '.join(sorted(TAG_ALIASES))}, or a raw '<!-- ... -->' marker."
    raise ConfigError(msg)


def _read_message(message: str) -> str:
    return sys.stdin.read() if message == "-" else message


def _load(*, require_auth: bool = True, **overrides: Any) -> Config:
    """Load config or exit 1 with a readable error."""
    try:
        config = load_config(overrides=overrides)
        if require_auth:
            config.owner_repo  # noqa: B018
            if not config.token:
                msg = "No GitHub token. Pass --token or set GH_TOKEN / GITHUB_TOKEN."
                raise ConfigError(msg)
    except ConfigError as exc:
        logger.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    return config


def _run(config: Config, action: Callable[[Commenter], Awaitable[T]]) -> T:
    async def _main() -> T:
        async with Commenter(config) as commenter:
            return await action(commenter)

    return asyncio.run(_main())


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command
def comment(  # noqa: PLR0913
    message: str,
    *,
    tag: str = "general",
    mode: str = "replace",
    target: int | None = None,
    token: str | None = None,
    repo: str | None = None,
    verbose: bool = False,
) -> None:
    """Post or update the tagged comment on the triggering PR or issue.

    Parameters
    ----------
    message
        Comment text, or ``-`` to read it from stdin.
    tag
        Which comment to reconcile: general, reply, summarize, or a raw marker.
    mode
        create, replace, append or prepend.
    target
        Issue or PR number. Defaults to the one in the event payload.
    """
    setup_logging(verbose=verbose)
    config = _load(token=token, repo=repo)
    try:
        parsed_tag = _parse_tag(tag)
    except ConfigError as exc:
        logger.error("%s", exc)  # noqa: TRY400
        sys.exit(1)

    text = _read_message(message)
    result = _run(config, lambda c: c.comment(text, parsed_tag, mode, target=target))
    if result is not None:
        logger.info("Wrote comment %s", result.id)


@app.command(name="update-description")
def update_description(
    pull_number: int,
    message: str,
    *,
    token: str | None = None,
    repo: str | None = None,
    verbose: bool = False,
) -> None:
    """Insert or refresh the release-notes block in a PR description."""
    setup_logging(verbose=verbose)
    config = _load(token=token, repo=repo)
    text = _read_message(message)
    if _run(config, lambda c: c.update_description(pull_number, text)) is not None:
        logger.info("Updated description of PR #%d", pull_number)


@app.command(name="review-comment")
def review_comment(  # noqa: PLR0913
    pull_number: int,
    commit_id: str,
    path: str,
    line: int,
    message: str,
    *,
    token: str | None = None,
    repo: str | None = None,
    verbose: bool = False,
) -> None:
    """Post or update the tagged review comment on a file line."""
    setup_logging(verbose=verbose)
    config = _load(token=token, repo=repo)
    text = _read_message(message)
    result = _run(config, lambda c: c.review_comment(pull_number, commit_id, path, line, text))
    if result is not None:
        logger.info("Wrote review comment %s", result.id)


@app.command(name="check-env")
def check_env(*, token: str | None = None, repo: str | None = None) -> None:
    """Print the resolved configuration, with the token masked."""
    setup_logging()
    config = _load(require_auth=False, token=token, repo=repo)

    print("prcommenter check-env")
    print("=" * 40)
    print(f"  repo:        {config.repo or '(not set)'}")
    print(f"  api_url:     {config.api_url}")
    print(f"  token:       {_mask_value(config.token)}")
    print(f"  page_size:   {config.page_size}")
    print(f"  greeting:    {config.greeting}")
    print(f"  pull_number: {config.pull_number}")
    print(f"  issue_number: {config.issue_number}")

    problems: list[str] = []
    try:
        config.owner_repo  # noqa: B018
    except ConfigError as exc:
        problems.append(str(exc))
    if not config.token:
        problems.append("No GitHub token found.")
    if config.target_number is None:
        problems.append("No pull request or issue in the event payload; 'comment' needs --target.")

    print()
    for problem in problems:
        print(f"  ⚠️  {problem}")
    if not problems:
        print("  ✅ Ready")
