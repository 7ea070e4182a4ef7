from __future__ import annotations

import pytest

from repoinsight.config import RepoInsightConfig
from tests._fixtures.fakes import make_config


@pytest.fixture
def config() -> RepoInsightConfig:
    """Config with a 10-character chunk budget so tests control chunking."""
    return make_config()
