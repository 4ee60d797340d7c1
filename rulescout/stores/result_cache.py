"""Persistent cache for per-package discovery results."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Optional

from ..logging import get_logger
from ..models import (
    CacheEntry,
    DiscoveredRule,
    PackageMetadata,
    RegistryType,
    metadata_from_dict,
    metadata_to_dict,
    parse_timestamp,
    rule_from_dict,
    rule_to_dict,
)

_CACHE_VERSION = 1

logger = get_logger("stores.result_cache")


def cache_key(registry: RegistryType | str, name: str, version: str) -> str:
    registry_name = registry.value if isinstance(registry, RegistryType) else str(registry)
    return f"{registry_name}:{name}:{version}"


class ResultCache:
    """Stores metadata and rules keyed by ``registry:name:version``.

    With ``path=None`` the cache lives only in memory. Otherwise every write
    is flushed to a temporary file and moved over ``path`` so readers never
    observe a half-written document. Mutation is serialised by an internal
    lock; reads take the same lock briefly to copy the raw entry.
    """

    def __init__(self, path: Path | None = None, *, autosave: bool = True) -> None:
        self._path = path
        self._autosave = autosave
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        self._lock = threading.Lock()
        if self._path is not None:
            self._load(self._path)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def get(self, registry: RegistryType | str, name: str, version: str) -> Optional[CacheEntry]:
        key = cache_key(registry, name, version)
        with self._lock:
            raw = self._entries.get(key)
        if raw is None:
            return None
        try:
            return _entry_from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.debug("Ignoring unreadable cache entry %s: %s", key, exc)
            return None

    def put(
        self,
        registry: RegistryType | str,
        name: str,
        version: str,
        entry: CacheEntry,
    ) -> None:
        key = cache_key(registry, name, version)
        serialised = _entry_to_dict(entry)
        with self._lock:
            self._entries[key] = serialised
            self._dirty = True
            if self._autosave:
                self._persist_locked()

    def store(
        self,
        registry: RegistryType | str,
        name: str,
        version: str,
        *,
        metadata: PackageMetadata,
        rules: List[DiscoveredRule],
    ) -> CacheEntry:
        entry = CacheEntry(metadata=metadata, rules=list(rules), fetched_at=datetime.now(UTC))
        self.put(registry, name, version, entry)
        return entry

    def invalidate(self, registry: RegistryType | str, name: str, version: str) -> bool:
        key = cache_key(registry, name, version)
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            if removed:
                self._dirty = True
                if self._autosave:
                    self._persist_locked()
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._dirty = True
            if self._autosave:
                self._persist_locked()

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def persist(self) -> None:
        with self._lock:
            self._persist_locked()

    # ------------------------------------------------------------------
    # Internal helpers

    def _persist_locked(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {"version": _CACHE_VERSION, "entries": self._entries}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._dirty = False

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Discarding unreadable cache at %s: %s", path, exc)
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        self._entries = {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str)
            and isinstance(raw, dict)
            and isinstance(raw.get("metadata"), dict)
            and isinstance(raw.get("rules"), list)
        }
        self._dirty = False


def _entry_to_dict(entry: CacheEntry) -> Dict[str, object]:
    return {
        "metadata": metadata_to_dict(entry.metadata),
        "rules": [rule_to_dict(rule) for rule in entry.rules],
        "fetchedAt": entry.fetched_at.astimezone(UTC).isoformat().replace("+00:00", "Z"),
    }


def _entry_from_dict(payload: Dict[str, object]) -> CacheEntry:
    rules = payload.get("rules")
    return CacheEntry(
        metadata=metadata_from_dict(payload["metadata"]),  # type: ignore[arg-type]
        rules=[rule_from_dict(item) for item in rules if isinstance(item, dict)]  # type: ignore[union-attr]
        if isinstance(rules, list)
        else [],
        fetched_at=parse_timestamp(payload.get("fetchedAt")),
    )


__all__ = ["ResultCache", "cache_key"]
