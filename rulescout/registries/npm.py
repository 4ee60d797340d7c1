"""npm registry fetcher for Node.js packages."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

from .base import (
    RegistryFetcher,
    as_str_dict,
    as_str_list,
    infer_framework,
    normalize_version,
    parse_repository,
)
from ..errors import NotFoundError, ParseError
from ..models import Maintainer, PackageMetadata, RegistryType, parse_timestamp


class NpmRegistryFetcher(RegistryFetcher):
    """Resolves package documents from registry.npmjs.org."""

    name = "npm"
    registry_type = RegistryType.NPM
    base_url = "https://registry.npmjs.org"

    def fetch_metadata(self, package_name: str, version: Optional[str] = None) -> PackageMetadata:
        url = f"{self.base_url}/{quote(package_name, safe='@')}"
        document = self.http.fetch_json(url, timeout=self.timeout)
        if not isinstance(document, dict):
            raise ParseError(f"Unexpected npm response for {package_name}", url=url)
        return self._extract_metadata(package_name, document, version)

    def _extract_metadata(
        self, package_name: str, document: Dict[str, Any], version: Optional[str]
    ) -> PackageMetadata:
        versions = document.get("versions")
        dist_tags = document.get("dist-tags")
        if not isinstance(versions, dict) or not isinstance(dist_tags, dict):
            raise ParseError(f"npm document for {package_name} is missing versions")

        target = normalize_version(version)
        if target is None and version and version.strip() in dist_tags:
            target = str(dist_tags[version.strip()])
        if target is None:
            target = dist_tags.get("latest")
        if not isinstance(target, str) or target not in versions:
            raise NotFoundError(f"Version {version or 'latest'} of {package_name} not found on npm")

        data = versions[target]
        if not isinstance(data, dict):
            raise ParseError(f"npm version payload for {package_name}@{target} is malformed")

        times = document.get("time") if isinstance(document.get("time"), dict) else {}
        name = str(data.get("name") or package_name)
        description = data.get("description") if isinstance(data.get("description"), str) else None
        keywords = as_str_list(data.get("keywords"))
        license_value = data.get("license")
        if isinstance(license_value, dict):
            license_value = license_value.get("type")

        return PackageMetadata(
            name=name,
            version=target,
            published_at=parse_timestamp(times.get(target)),
            description=description,
            homepage=data.get("homepage") if isinstance(data.get("homepage"), str) else None,
            repository=parse_repository(data.get("repository")),
            license=str(license_value) if license_value else None,
            keywords=keywords,
            maintainers=_parse_maintainers(data.get("maintainers")),
            dependencies=as_str_dict(data.get("dependencies")),
            peer_dependencies=as_str_dict(data.get("peerDependencies")),
            inferred_framework=infer_framework(name, keywords, description),
        )


def _parse_maintainers(value: Any) -> list[Maintainer]:
    maintainers: list[Maintainer] = []
    if not isinstance(value, list):
        return maintainers
    for item in value:
        if isinstance(item, dict) and item.get("name"):
            email = item.get("email")
            maintainers.append(
                Maintainer(name=str(item["name"]), email=str(email) if email else None)
            )
        elif isinstance(item, str) and item:
            maintainers.append(Maintainer(name=item))
    return maintainers


__all__ = ["NpmRegistryFetcher"]
