"""JSR registry fetcher for Deno/TypeScript packages."""

from __future__ import annotations

from typing import Optional, Tuple

from .base import RegistryFetcher, infer_framework, normalize_version
from ..errors import NotFoundError, ParseError
from ..models import PackageMetadata, RegistryType, Repository, parse_timestamp


class JsrRegistryFetcher(RegistryFetcher):
    """Resolves ``@scope/name`` packages through the JSR management API."""

    name = "jsr"
    registry_type = RegistryType.JSR
    base_url = "https://api.jsr.io"

    def fetch_metadata(self, package_name: str, version: Optional[str] = None) -> PackageMetadata:
        scope, bare = split_jsr_name(package_name)
        package_url = f"{self.base_url}/scopes/{scope}/packages/{bare}"
        document = self.http.fetch_json(package_url, timeout=self.timeout)
        if not isinstance(document, dict):
            raise ParseError(f"Unexpected JSR response for {package_name}", url=package_url)

        target = normalize_version(version) or document.get("latestVersion")
        if not isinstance(target, str) or not target:
            raise NotFoundError(f"{package_name} has no published versions on JSR")

        # The version endpoint 404s for unknown versions, which surfaces as NotFoundError.
        version_doc = self.http.fetch_json(f"{package_url}/versions/{target}", timeout=self.timeout)
        published = version_doc.get("createdAt") if isinstance(version_doc, dict) else None

        full_name = f"@{scope}/{bare}"
        description = document.get("description") if isinstance(document.get("description"), str) else None
        repository = None
        github = document.get("githubRepository")
        if isinstance(github, dict) and github.get("owner") and github.get("name"):
            repository = Repository(
                type="git", url=f"https://github.com/{github['owner']}/{github['name']}"
            )

        return PackageMetadata(
            name=full_name,
            version=target,
            published_at=parse_timestamp(published or document.get("updatedAt")),
            description=description or None,
            homepage=None,
            repository=repository,
            inferred_framework=infer_framework(full_name, [], description),
        )


def split_jsr_name(package_name: str) -> Tuple[str, str]:
    """Split ``jsr:@scope/name`` or ``@scope/name`` into its scope and name."""
    spec = package_name[4:] if package_name.startswith("jsr:") else package_name
    spec = spec.lstrip("@")
    scope, _, bare = spec.partition("/")
    if not scope or not bare:
        raise NotFoundError(f"'{package_name}' is not a scoped JSR package name")
    return scope, bare


__all__ = ["JsrRegistryFetcher", "split_jsr_name"]
