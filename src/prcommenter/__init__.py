"""prcommenter: idempotent, tag-tracked comments on GitHub pull requests and issues."""

from prcommenter.commenter import Commenter
from prcommenter.config import Config, ConfigError, load_config
from prcommenter.github_api import GitHubAuthError, GitHubCommentStore, GitHubError
from prcommenter.models import ChainEntry, Comment, CommentMode, ConversationChain
from prcommenter.store import CommentStore
from prcommenter.tags import COMMENT_GREETING, CommentTag, build_body

__all__ = [
    "COMMENT_GREETING",
    "ChainEntry",
    "Comment",
    "CommentMode",
    "CommentStore",
    "CommentTag",
    "Commenter",
    "Config",
    "ConfigError",
    "ConversationChain",
    "GitHubAuthError",
    "GitHubCommentStore",
    "GitHubError",
    "build_body",
    "load_config",
]
