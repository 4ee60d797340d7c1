"""PyPI registry fetcher for Python packages."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .base import RegistryFetcher, infer_framework, normalize_version
from ..errors import ParseError
from ..models import Maintainer, PackageMetadata, RegistryType, Repository, parse_timestamp

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)\s*(.*)$")
_SOURCE_KEYS = ("source", "source code", "repository", "code", "github")
_HOMEPAGE_KEYS = ("homepage", "home", "documentation", "docs")


class PypiRegistryFetcher(RegistryFetcher):
    """Resolves packages through the PyPI JSON API."""

    name = "pypi"
    registry_type = RegistryType.PYPI
    base_url = "https://pypi.org/pypi"

    def fetch_metadata(self, package_name: str, version: Optional[str] = None) -> PackageMetadata:
        target = normalize_version(version)
        path = quote(package_name)
        url = f"{self.base_url}/{path}/{target}/json" if target else f"{self.base_url}/{path}/json"
        document = self.http.fetch_json(url, timeout=self.timeout)
        info = document.get("info") if isinstance(document, dict) else None
        if not isinstance(info, dict):
            raise ParseError(f"Unexpected PyPI response for {package_name}", url=url)

        project_urls = {
            str(key).lower(): str(value)
            for key, value in (info.get("project_urls") or {}).items()
            if value
        }
        name = str(info.get("name") or package_name)
        description = info.get("summary") or None
        keywords = _split_keywords(info.get("keywords"))

        return PackageMetadata(
            name=name,
            version=str(info.get("version") or target),
            published_at=parse_timestamp(_upload_time(document)),
            description=description,
            homepage=info.get("home_page") or _first(project_urls, _HOMEPAGE_KEYS),
            repository=_repository(project_urls),
            license=info.get("license") or None,
            keywords=keywords,
            maintainers=_maintainers(info),
            dependencies=_requirements(info.get("requires_dist")),
            inferred_framework=infer_framework(name, keywords, description),
        )


def _split_keywords(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item]
    if not isinstance(value, str):
        return []
    separator = "," if "," in value else None
    return [part.strip() for part in value.split(separator) if part.strip()]


def _first(urls: Dict[str, str], keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        if key in urls:
            return urls[key]
    return None


def _repository(urls: Dict[str, str]) -> Optional[Repository]:
    url = _first(urls, _SOURCE_KEYS)
    if url is None:
        url = next((value for value in urls.values() if "github.com" in value), None)
    return Repository(type="git", url=url) if url else None


def _maintainers(info: Dict[str, Any]) -> List[Maintainer]:
    maintainers: List[Maintainer] = []
    for name_key, email_key in (("author", "author_email"), ("maintainer", "maintainer_email")):
        name = info.get(name_key)
        if name:
            maintainers.append(Maintainer(name=str(name), email=info.get(email_key) or None))
    return maintainers


def _requirements(value: Any) -> Dict[str, str]:
    requirements: Dict[str, str] = {}
    if not isinstance(value, list):
        return requirements
    for entry in value:
        if not isinstance(entry, str) or "extra ==" in entry:
            continue
        match = _REQUIREMENT_NAME.match(entry.split(";", 1)[0])
        if match:
            requirements[match.group(1)] = match.group(2).strip("() ") or "*"
    return requirements


def _upload_time(document: Dict[str, Any]) -> Optional[str]:
    files = document.get("urls")
    if isinstance(files, list):
        for item in files:
            if isinstance(item, dict) and item.get("upload_time_iso_8601"):
                return str(item["upload_time_iso_8601"])
    return None


__all__ = ["PypiRegistryFetcher"]
