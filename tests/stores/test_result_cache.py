"""Tests for the discovery result cache."""

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime
from pathlib import Path

from rulescout.models import CacheEntry, RegistryType, RuleCategory
from rulescout.stores import ResultCache, cache_key
from tests._fixtures.fakes import make_metadata, make_rule


def _entry() -> CacheEntry:
    return CacheEntry(
        metadata=make_metadata(homepage="https://react.dev"),
        rules=[make_rule("Hooks", category=RuleCategory.FRAMEWORK)],
        fetched_at=datetime(2024, 5, 1, 9, 30, tzinfo=UTC),
    )


def test_result_cache_round_trip(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache" / "discovery.json"
    cache = ResultCache(cache_path)
    entry = _entry()

    cache.put(RegistryType.NPM, "react", "18.2.0", entry)

    assert cache.get(RegistryType.NPM, "react", "18.2.0") == entry
    reloaded = ResultCache(cache_path)
    assert reloaded.get("npm", "react", "18.2.0") == entry
    assert reloaded.keys() == ["npm:react:18.2.0"]


def test_result_cache_miss_is_none(tmp_path: Path) -> None:
    cache = ResultCache(tmp_path / "discovery.json")

    assert cache.get(RegistryType.NPM, "react", "18.2.0") is None
    cache.put(RegistryType.NPM, "react", "18.2.0", _entry())
    assert cache.get(RegistryType.NPM, "react", "17.0.0") is None
    assert cache.get(RegistryType.JSR, "react", "18.2.0") is None


def test_result_cache_writes_are_atomic_documents(tmp_path: Path) -> None:
    cache_path = tmp_path / "discovery.json"
    cache = ResultCache(cache_path)
    cache.put(RegistryType.NPM, "react", "18.2.0", _entry())

    payload = json.loads(cache_path.read_text(encoding="utf-8"))

    assert payload["version"] == 1
    assert list(payload["entries"]) == ["npm:react:18.2.0"]
    assert [path.name for path in tmp_path.iterdir()] == ["discovery.json"]


def test_result_cache_invalidate_and_clear(tmp_path: Path) -> None:
    cache_path = tmp_path / "discovery.json"
    cache = ResultCache(cache_path)
    cache.put(RegistryType.NPM, "react", "18.2.0", _entry())
    cache.put(RegistryType.NPM, "vue", "3.4.0", _entry())

    assert cache.invalidate(RegistryType.NPM, "react", "18.2.0") is True
    assert cache.invalidate(RegistryType.NPM, "react", "18.2.0") is False
    assert ResultCache(cache_path).keys() == ["npm:vue:3.4.0"]

    cache.clear()
    assert len(ResultCache(cache_path)) == 0


def test_result_cache_ignores_corrupt_files(tmp_path: Path) -> None:
    cache_path = tmp_path / "discovery.json"
    cache_path.write_text("{not json", encoding="utf-8")

    cache = ResultCache(cache_path)

    assert cache.keys() == []
    cache.put(RegistryType.NPM, "react", "18.2.0", _entry())
    assert ResultCache(cache_path).get(RegistryType.NPM, "react", "18.2.0") is not None


def test_in_memory_cache_and_concurrent_writers() -> None:
    cache = ResultCache()
    entry = _entry()

    threads = [
        threading.Thread(target=cache.put, args=(RegistryType.NPM, f"pkg-{index}", "1.0.0", entry))
        for index in range(20)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == 20
    assert cache.path is None


def test_cache_key_format() -> None:
    assert cache_key(RegistryType.PYPI, "requests", "2.31.0") == "pypi:requests:2.31.0"
