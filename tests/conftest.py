from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _isolate_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real tokens in the developer's environment out of tests."""
    for key in (
        "RULESCOUT_GITHUB_TOKEN",
        "GITHUB_TOKEN",
        "GH_TOKEN",
        "RULESCOUT_OPENAI_API_KEY",
        "OPENAI_API_KEY",
        "RULESCOUT_LLM_MODEL",
        "OPENAI_MODEL",
        "RULESCOUT_LLM_BASE_URL",
        "OPENAI_BASE_URL",
    ):
        monkeypatch.delenv(key, raising=False)
