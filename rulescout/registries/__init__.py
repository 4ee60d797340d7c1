"""Registry fetcher implementations and the registry that selects between them."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, Optional

from .base import RegistryFetcher, infer_framework, normalize_version
from .jsr import JsrRegistryFetcher
from .npm import NpmRegistryFetcher
from .pypi import PypiRegistryFetcher
from ..models import RegistryType
from ..network import HttpClient

_ENTRY_POINT_GROUP = "rulescout.fetchers"

_BUILTIN_FACTORIES: Dict[str, Callable[..., RegistryFetcher]] = {
    "npm": NpmRegistryFetcher,
    "jsr": JsrRegistryFetcher,
    "pypi": PypiRegistryFetcher,
}


class FetcherRegistry:
    """Explicit set of fetchers handed to the orchestrator."""

    def __init__(self, fetchers: Iterable[RegistryFetcher] = ()) -> None:
        self._fetchers: Dict[str, RegistryFetcher] = {}
        for fetcher in fetchers:
            self.register(fetcher)

    def register(self, fetcher: RegistryFetcher) -> None:
        if not isinstance(fetcher, RegistryFetcher):
            raise TypeError(f"{fetcher!r} is not a RegistryFetcher")
        self._fetchers[fetcher.name] = fetcher

    def get(self, name: str) -> Optional[RegistryFetcher]:
        return self._fetchers.get(name)

    def for_package(self, package_name: str, registry_type: RegistryType) -> Optional[RegistryFetcher]:
        """Return the first fetcher that accepts the package, in registration order."""
        for fetcher in self._fetchers.values():
            if fetcher.can_fetch(package_name, registry_type):
                return fetcher
        return None

    def __iter__(self):
        return iter(self._fetchers.values())

    def __len__(self) -> int:
        return len(self._fetchers)


def build_default_registry(
    http: HttpClient | None = None, *, timeout: float = 5.0
) -> FetcherRegistry:
    """Instantiate built-in fetchers plus any registered through entry points."""
    client = http or HttpClient()
    registry = FetcherRegistry()
    for factory in _BUILTIN_FACTORIES.values():
        registry.register(factory(client, timeout=timeout))

    for entry in _iter_entry_points():
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - depends on installed plugins
            raise RuntimeError(f"Failed to load fetcher entry point '{entry.name}': {exc}") from exc
        registry.register(_coerce_fetcher(loaded, client, timeout))
    return registry


def _coerce_fetcher(obj: object, http: HttpClient, timeout: float) -> RegistryFetcher:
    if isinstance(obj, RegistryFetcher):
        return obj
    if isinstance(obj, type) and issubclass(obj, RegistryFetcher):
        return obj(http, timeout=timeout)
    if callable(obj):
        instance = obj()
        if isinstance(instance, RegistryFetcher):
            return instance
    raise TypeError("Fetcher entry point must be a RegistryFetcher subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - broken plugin metadata
        return []
    return entry_points.select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "FetcherRegistry",
    "JsrRegistryFetcher",
    "NpmRegistryFetcher",
    "PypiRegistryFetcher",
    "RegistryFetcher",
    "build_default_registry",
    "infer_framework",
    "normalize_version",
]
