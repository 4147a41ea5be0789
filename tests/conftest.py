"""Global test fixtures for prcommenter."""

from __future__ import annotations

import logging

import pytest
from helpers.fake_store import FakeCommentStore

from prcommenter.commenter import Commenter
from prcommenter.config import Config


@pytest.fixture
def config() -> Config:
    """A fully explicit config: no environment, no config file."""
    return Config(token="tok_test", repo="owner/repo", pull_number=42, page_size=100)


@pytest.fixture
def store() -> FakeCommentStore:
    return FakeCommentStore()


@pytest.fixture
def commenter(config: Config, store: FakeCommentStore) -> Commenter:
    return Commenter(config, store=store)


@pytest.fixture(autouse=True)
def _reset_prcommenter_logger():
    """Undo handler/propagation changes made by ``setup_logging`` so caplog keeps working."""
    logger = logging.getLogger("prcommenter")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
