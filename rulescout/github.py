"""Repository hosting API client (GitHub REST)."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import ParseError
from .network import HttpClient

_REPO_URL = re.compile(
    r"""
    ^(?:git\+)?                       # npm-style git+https:// prefix
    (?:
        (?:https?|git|ssh)://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/
      | (?:[^@/]+@)?(?P<scp_host>[^/:]+):   # scp-like git@github.com:owner/repo
    )
    (?P<owner>[^/\s]+)/(?P<repo>[^/\s#?]+?)
    (?:\.git)?
    (?:[/#?].*)?$
    """,
    re.VERBOSE,
)
_SHORTHAND = re.compile(r"^(?:github:)?(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+)$")


@dataclass(frozen=True)
class RepositoryRef:
    """Owner/repository pair on a hosting service."""

    owner: str
    repo: str
    host: str = "github.com"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repository_url(url: Optional[str]) -> Optional[RepositoryRef]:
    """Extract the owner/repo pair from the URL forms registries publish.

    Handles ``https://``, ``git+https://``, ``git://``, ``ssh://git@`` and
    scp-style ``git@host:owner/repo`` URLs, an optional ``.git`` suffix and a
    trailing sub-path or fragment. Bare ``owner/repo`` and ``github:owner/repo``
    shorthands resolve to GitHub.
    """
    if not url:
        return None
    candidate = url.strip()
    shorthand = _SHORTHAND.match(candidate)
    if shorthand:
        return RepositoryRef(owner=shorthand.group("owner"), repo=shorthand.group("repo"))
    match = _REPO_URL.match(candidate)
    if not match:
        return None
    host = (match.group("host") or match.group("scp_host") or "").lower()
    repo = match.group("repo")
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        return None
    return RepositoryRef(owner=match.group("owner"), repo=repo, host=host)


class GitHubClient:
    """Thin wrapper over the GitHub contents API used by repository strategies."""

    DEFAULT_API_URL = "https://api.github.com"

    def __init__(
        self,
        http: HttpClient | None = None,
        *,
        api_url: str | None = None,
        token: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.http = http or HttpClient()
        self.api_url = (api_url or self.DEFAULT_API_URL).rstrip("/")
        self.token = token
        self.timeout = timeout

    def list_directory(self, owner: str, repo: str, path: str) -> List[Dict[str, Any]]:
        """Return directory entries; raises NotFoundError when the path is absent."""
        payload = self.http.fetch_json(
            self._contents_url(owner, repo, path), headers=self._headers(), timeout=self.timeout
        )
        if isinstance(payload, dict):
            # A file path returns a single object rather than a listing.
            return [payload]
        if not isinstance(payload, list):
            raise ParseError(f"Unexpected directory listing for {owner}/{repo}/{path}")
        return [item for item in payload if isinstance(item, dict)]

    def get_file(self, owner: str, repo: str, path: str) -> str:
        payload = self.http.fetch_json(
            self._contents_url(owner, repo, path), headers=self._headers(), timeout=self.timeout
        )
        if not isinstance(payload, dict):
            raise ParseError(f"{owner}/{repo}/{path} is not a file")
        return decode_content(payload)

    def get_readme(self, owner: str, repo: str) -> str:
        payload = self.http.fetch_json(
            f"{self.api_url}/repos/{owner}/{repo}/readme",
            headers=self._headers(),
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            raise ParseError(f"Unexpected README payload for {owner}/{repo}")
        return decode_content(payload)

    def download(self, url: str) -> Any:
        """Fetch a raw JSON artifact through its unauthenticated download URL."""
        return self.http.fetch_json(url, timeout=self.timeout)

    def download_text(self, url: str) -> str:
        return self.http.fetch_text(url, timeout=self.timeout)

    def _contents_url(self, owner: str, repo: str, path: str) -> str:
        return f"{self.api_url}/repos/{owner}/{repo}/contents/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


def decode_content(payload: Dict[str, Any]) -> str:
    content = payload.get("content")
    if not isinstance(content, str):
        raise ParseError("Contents payload has no content field")
    if payload.get("encoding", "base64") != "base64":
        return content
    try:
        return base64.b64decode(content).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as exc:
        raise ParseError("Contents payload is not valid base64") from exc


__all__ = ["GitHubClient", "RepositoryRef", "decode_content", "parse_repository_url"]
