"""Configuration for prcommenter.

Settings are merged, lowest precedence first, from built-in defaults,
``.prcommenter.toml`` (found by walking up to the ``.git`` root), the
GitHub Actions environment, and explicit overrides such as CLI flags.
The result is a plain :class:`Config` value handed to the engine; nothing
below this module reads the environment.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess  # noqa: S404
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from prcommenter.tags import COMMENT_GREETING

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".prcommenter.toml"
DEFAULT_API_URL = "https://api.github.com"


class ConfigError(ValueError):
    """Raised when configuration is missing or invalid."""


class Config(BaseModel):
    """Top-level prcommenter configuration."""

    model_config = ConfigDict(extra="ignore")

    token: str | None = Field(default=None, description="Bearer token used for every API call", repr=False)
    repo: str = Field(default="", description="Repository in 'owner/repo' format")
    api_url: str = Field(default=DEFAULT_API_URL, description="GitHub REST API base URL")
    page_size: int = Field(default=100, ge=1, le=100, description="Items requested per listing page")
    greeting: str = Field(default=COMMENT_GREETING, description="First line of every comment body")
    pull_number: int | None = Field(default=None, description="Pull request the run was triggered for")
    issue_number: int | None = Field(default=None, description="Issue the run was triggered for")

    @property
    def owner_repo(self) -> tuple[str, str]:
        """Split ``repo`` into ``(owner, name)``.

        Raises:
            ConfigError: If ``repo`` is not in ``owner/repo`` format.
        """
        owner, _, name = self.repo.partition("/")
        if not owner or not name or "/" in name:
            msg = f"Invalid repo format {self.repo!r}. Expected 'owner/repo'."
            raise ConfigError(msg)
        return owner, name

    @property
    def target_number(self) -> int | None:
        """The pull request number if known, else the issue number."""
        if self.pull_number is not None:
            return self.pull_number
        return self.issue_number


# -- Token resolution ----------------------------------------------------------


def resolve_token(explicit: str | None = None, environ: Mapping[str, str] | None = None) -> str | None:
    """Resolve the GitHub token.

    Tries (in order):
    1. the explicit value (e.g. the ``--token`` flag)
    2. ``GH_TOKEN`` env var
    3. ``GITHUB_TOKEN`` env var
    4. ``gh auth token``, which reads the local gh config without network access
    """
    if explicit:
        return explicit
    env = os.environ if environ is None else environ
    token = env.get("GH_TOKEN") or env.get("GITHUB_TOKEN")
    if token:
        logger.debug("GitHub token resolved from env var")
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],  # noqa: S607
            capture_output=True,
            text=True,
            check=False,
            timeout=5,
        )
        if result.returncode == 0 and result.stdout.strip():
            logger.debug("GitHub token resolved from gh auth token")
            return result.stdout.strip()
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError):
        pass

    return None


# -- Config file ---------------------------------------------------------------


def _find_config_file(start: Path) -> Path | None:
    """Walk up from *start* looking for ``.prcommenter.toml``, stopping at ``.git`` root."""
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        if (current / ".git").exists():
            return None
        current = current.parent


def _read_config_file(path: Path) -> dict[str, Any]:
    logger.info("Loading config from %s", path)
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc

    for key in sorted(set(data) - set(Config.model_fields)):
        logger.warning("Unknown config key '%s' in %s", key, path)
    return data


# -- GitHub Actions environment ------------------------------------------------


def _read_event_payload(event_path: str) -> dict[str, Any]:
    """Return the triggering event payload, or an empty dict if unreadable."""
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read event payload %s: %s", event_path, exc)
        return {}
    return payload if isinstance(payload, dict) else {}


def _from_environment(env: Mapping[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if env.get("GITHUB_REPOSITORY"):
        data["repo"] = env["GITHUB_REPOSITORY"]
    if env.get("GITHUB_API_URL"):
        data["api_url"] = env["GITHUB_API_URL"]

    event_path = env.get("GITHUB_EVENT_PATH")
    if event_path:
        payload = _read_event_payload(event_path)
        pull_request = payload.get("pull_request") or {}
        issue = payload.get("issue") or {}
        if pull_request.get("number") is not None:
            data["pull_number"] = pull_request["number"]
        if issue.get("number") is not None:
            data["issue_number"] = issue["number"]
    return data


def load_config(
    cwd: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Config:
    """Build the effective :class:`Config`.

    Args:
        cwd: Directory to start the config file search from (default: cwd).
        environ: Environment mapping (default: ``os.environ``).
        overrides: Explicit values; ``None`` entries are ignored.

    Raises:
        ConfigError: On invalid TOML or values that fail validation.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    config_path = _find_config_file(Path(cwd) if cwd else Path.cwd())
    if config_path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILENAME)
    else:
        data.update(_read_config_file(config_path))

    data.update(_from_environment(env))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    data["token"] = resolve_token(data.get("token"), env)

    try:
        return Config.model_validate(data)
    except ValidationError as exc:
        source = config_path or "environment"
        msg = f"Invalid config in {source}: {exc}"
        raise ConfigError(msg) from exc
