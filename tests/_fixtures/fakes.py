"""In-memory stand-ins for network collaborators."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Any, Dict, List, Mapping, Optional

from rulescout.errors import NotFoundError
from rulescout.models import (
    DiscoveredRule,
    PackageMetadata,
    Repository,
    RuleCategory,
    RuleContent,
    RuleSource,
)


class FakeHttpClient:
    """Serves canned responses keyed by URL; unknown URLs raise NotFoundError."""

    def __init__(self, responses: Mapping[str, Any] | None = None) -> None:
        self.responses: Dict[str, Any] = dict(responses or {})
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch_json(self, url: str, *, headers=None, timeout=None) -> Any:
        return self._respond(url)

    def fetch_text(self, url: str, *, headers=None, timeout=None) -> str:
        return self._respond(url)

    def _respond(self, url: str) -> Any:
        with self._lock:
            self.calls.append(url)
        if url not in self.responses:
            raise NotFoundError(f"Resource not found: {url}", url=url, status=404)
        value = self.responses[url]
        if isinstance(value, Exception):
            raise value
        return value


class FakeGitHub:
    """Mimics GitHubClient with dictionaries of directories, files and READMEs."""

    def __init__(
        self,
        *,
        directories: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        readmes: Mapping[str, Any] | None = None,
        downloads: Mapping[str, Any] | None = None,
    ) -> None:
        self.directories = dict(directories or {})
        self.files = dict(files or {})
        self.readmes = dict(readmes or {})
        self.downloads = dict(downloads or {})
        self.calls: List[str] = []

    def list_directory(self, owner: str, repo: str, path: str) -> List[Dict[str, Any]]:
        return self._lookup(self.directories, f"{owner}/{repo}/{path}", "list_directory")

    def get_file(self, owner: str, repo: str, path: str) -> str:
        return self._lookup(self.files, f"{owner}/{repo}/{path}", "get_file")

    def get_readme(self, owner: str, repo: str) -> str:
        return self._lookup(self.readmes, f"{owner}/{repo}", "get_readme")

    def download(self, url: str) -> Any:
        return self._lookup(self.downloads, url, "download")

    def download_text(self, url: str) -> str:
        return self._lookup(self.downloads, url, "download_text")

    def _lookup(self, table: Mapping[str, Any], key: str, method: str) -> Any:
        self.calls.append(f"{method}:{key}")
        if key not in table:
            raise NotFoundError(f"{key} not found", status=404)
        value = table[key]
        if isinstance(value, Exception):
            raise value
        return value


def make_metadata(
    name: str = "react",
    version: str = "18.2.0",
    *,
    homepage: Optional[str] = None,
    repository: Optional[str] = None,
    keywords: Optional[List[str]] = None,
    description: Optional[str] = None,
    inferred_framework: Optional[str] = None,
) -> PackageMetadata:
    return PackageMetadata(
        name=name,
        version=version,
        published_at=datetime(2024, 1, 1, tzinfo=UTC),
        description=description,
        homepage=homepage,
        repository=Repository(type="git", url=repository) if repository else None,
        keywords=list(keywords or []),
        inferred_framework=inferred_framework,
    )


def make_rule(
    name: str,
    *,
    package: str = "react",
    confidence: float = 0.7,
    category: RuleCategory | str = RuleCategory.DOCUMENTATION,
    source: RuleSource = RuleSource.REPOSITORY,
    rule_id: Optional[str] = None,
) -> DiscoveredRule:
    return DiscoveredRule(
        id=rule_id or f"{package}-{name}",
        name=name,
        description=f"{name} description",
        confidence=confidence,
        source=source,
        package_name=package,
        package_version="1.0.0",
        category=category,
        content=RuleContent(markdown=f"# {name}"),
    )


__all__ = ["FakeGitHub", "FakeHttpClient", "make_metadata", "make_rule"]
