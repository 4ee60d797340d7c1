"""Tests for repository URL parsing and the GitHub client."""

from __future__ import annotations

import base64

import pytest

from rulescout.errors import NotFoundError, ParseError
from rulescout.github import GitHubClient, RepositoryRef, decode_content, parse_repository_url
from tests._fixtures.fakes import FakeHttpClient


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/facebook/react",
        "https://github.com/facebook/react.git",
        "git+https://github.com/facebook/react.git",
        "git://github.com/facebook/react.git",
        "ssh://git@github.com/facebook/react.git",
        "git@github.com:facebook/react.git",
        "https://github.com/facebook/react/tree/main/packages/react",
        "git+https://github.com/facebook/react.git#main",
        "github:facebook/react",
        "facebook/react",
    ],
)
def test_parse_repository_url_forms(url: str) -> None:
    assert parse_repository_url(url) == RepositoryRef(owner="facebook", repo="react")


def test_parse_repository_url_keeps_foreign_hosts() -> None:
    ref = parse_repository_url("https://gitlab.com/group/project.git")

    assert ref is not None
    assert ref.host == "gitlab.com"
    assert ref.slug == "group/project"


@pytest.mark.parametrize("url", [None, "", "not a url", "https://github.com/onlyowner"])
def test_parse_repository_url_rejects_unusable_values(url) -> None:
    assert parse_repository_url(url) is None


def _encoded(text: str) -> dict:
    return {"content": base64.b64encode(text.encode("utf-8")).decode("ascii"), "encoding": "base64"}


def test_client_reads_readme_and_files() -> None:
    http = FakeHttpClient(
        {
            "https://api.github.com/repos/facebook/react/readme": _encoded("# React"),
            "https://api.github.com/repos/facebook/react/contents/.cursorrules": _encoded("Use hooks"),
        }
    )
    client = GitHubClient(http, token="secret")

    assert client.get_readme("facebook", "react") == "# React"
    assert client.get_file("facebook", "react", ".cursorrules") == "Use hooks"


def test_client_lists_directories_and_wraps_single_files() -> None:
    http = FakeHttpClient(
        {
            "https://ghe.example/api/v3/repos/o/r/contents/.vibe": [
                {"name": "rules.json", "type": "file"},
                "noise",
            ],
            "https://ghe.example/api/v3/repos/o/r/contents/README.md": {"name": "README.md", "type": "file"},
        }
    )
    client = GitHubClient(http, api_url="https://ghe.example/api/v3/")

    assert client.list_directory("o", "r", ".vibe") == [{"name": "rules.json", "type": "file"}]
    assert client.list_directory("o", "r", "README.md")[0]["name"] == "README.md"
    with pytest.raises(NotFoundError):
        client.list_directory("o", "r", "missing")


def test_client_sends_bearer_token() -> None:
    client = GitHubClient(FakeHttpClient(), token="abc")

    assert client._headers()["Authorization"] == "Bearer abc"
    assert "Authorization" not in GitHubClient(FakeHttpClient())._headers()


def test_decode_content_validates_payload() -> None:
    assert decode_content({"content": "plain", "encoding": "utf-8"}) == "plain"
    with pytest.raises(ParseError):
        decode_content({"encoding": "base64"})
