"""Base classes for registry fetcher plugins."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from ..models import PackageMetadata, RegistryType, Repository
from ..network import HttpClient
from ..stores.result_cache import cache_key

_RANGE_PREFIX = re.compile(r"^(?:\^|~|==|=|v)+")
_EXACT_VERSION = re.compile(r"^\d+(?:\.\d+)*(?:(?:a|b|rc|\.post|\.dev)\d+)*(?:[-+][0-9A-Za-z.-]+)?$")


class RegistryFetcher(ABC):
    """Contract for fetchers that normalize registry responses into PackageMetadata."""

    name: str = ""
    registry_type: RegistryType

    def __init__(self, http: HttpClient | None = None, *, timeout: float = 5.0) -> None:
        self.http = http or HttpClient()
        self.timeout = timeout

    def can_fetch(self, package_name: str, registry_type: RegistryType) -> bool:
        """Return True when this fetcher handles packages of the given registry type."""
        return registry_type == self.registry_type

    @abstractmethod
    def fetch_metadata(self, package_name: str, version: Optional[str] = None) -> PackageMetadata:
        """Fetch metadata for ``package_name``; an unpinned version resolves to latest.

        Raises NotFoundError when the package or version does not exist and
        NetworkError when the registry cannot be reached.
        """

    def cache_key(self, package_name: str, version: str) -> str:
        return cache_key(self.registry_type, package_name, version)


def normalize_version(spec: Optional[str]) -> Optional[str]:
    """Reduce a manifest version spec to an exact version, or None for "latest".

    ``^18.2.0`` and ``==2.31.0`` pin to the embedded version; ranges, tags and
    wildcards resolve to the registry's latest release.
    """
    if spec is None:
        return None
    cleaned = spec.strip()
    if not cleaned or cleaned.lower() in {"latest", "*", "x"}:
        return None
    cleaned = _RANGE_PREFIX.sub("", cleaned)
    if _EXACT_VERSION.match(cleaned):
        return cleaned
    return None


def infer_framework(
    package_name: str, keywords: Iterable[str], description: Optional[str]
) -> Optional[str]:
    """Guess the framework ecosystem a package belongs to."""
    name = package_name.lower()
    lowered = {keyword.lower() for keyword in keywords}
    text = (description or "").lower()

    if "react" in name or "react" in lowered or "react" in text:
        return "react"
    if "vue" in name or "vue" in lowered or "vue" in text:
        return "vue"
    if "angular" in name or "angular" in lowered or "angular" in text:
        return "angular"
    if "next" in name or "nextjs" in lowered or "next.js" in text:
        return "nextjs"
    if "express" in name or "express" in lowered or "express" in text:
        return "express"
    if lowered & {"testing", "jest", "mocha", "pytest", "vitest"}:
        return "testing"
    return None


def parse_repository(value: Any) -> Optional[Repository]:
    if isinstance(value, str) and value.strip():
        return Repository(type="git", url=value.strip())
    if isinstance(value, dict):
        url = value.get("url")
        if isinstance(url, str) and url.strip():
            return Repository(type=str(value.get("type") or "git"), url=url.strip())
    return None


def as_str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    if isinstance(value, str) and value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return []


def as_str_dict(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(key): str(item) for key, item in value.items()}


__all__ = [
    "RegistryFetcher",
    "as_str_dict",
    "as_str_list",
    "infer_framework",
    "normalize_version",
    "parse_repository",
]
