"""Tests for rulescout.models."""

from __future__ import annotations

from datetime import UTC, datetime

from rulescout.models import (
    BatchResult,
    Dependency,
    DiscoveryResult,
    Maintainer,
    PackageMetadata,
    Repository,
    RuleCategory,
    coerce_category,
    metadata_from_dict,
    metadata_to_dict,
    parse_timestamp,
    rule_from_dict,
    rule_to_dict,
)
from tests._fixtures.fakes import make_rule


def _result(name: str, *, rules=None, error=None) -> DiscoveryResult:
    return DiscoveryResult(
        dependency=Dependency(name=name, version="1.0.0", source="package.json"),
        rules=list(rules or []),
        error=error,
    )


def test_batch_result_partitions_by_rules_and_error() -> None:
    results = [
        _result("react", rules=[make_rule("a"), make_rule("b")]),
        _result("leftpad"),
        _result("missing", error="Resource not found"),
    ]

    batch = BatchResult.from_results(results)

    assert [item.dependency.name for item in batch.successful] == ["react"]
    assert [item.dependency.name for item in batch.failed] == ["missing"]
    assert batch.total_rules == 2
    assert (batch.stats.processed, batch.stats.successful, batch.stats.failed) == (3, 1, 1)
    assert batch.stats.total_rules == 2
    assert [rule.name for rule in batch.all_rules()] == ["a", "b"]


def test_batch_result_for_empty_input() -> None:
    batch = BatchResult.from_results([])

    assert batch.successful == [] and batch.failed == []
    assert batch.stats.processed == 0


def test_metadata_serialisation_preserves_fields() -> None:
    metadata = PackageMetadata(
        name="express",
        version="4.18.2",
        published_at=datetime(2023, 10, 8, 12, 0, tzinfo=UTC),
        description="Fast web framework",
        homepage="http://expressjs.com/",
        repository=Repository(type="git", url="git+https://github.com/expressjs/express.git"),
        license="MIT",
        keywords=["express", "framework"],
        maintainers=[Maintainer(name="wesleytodd", email="wes@example.com")],
        dependencies={"accepts": "~1.3.8"},
        inferred_framework="express",
    )

    payload = metadata_to_dict(metadata)

    assert payload["publishedAt"] == "2023-10-08T12:00:00Z"
    assert payload["peerDependencies"] == {}
    assert metadata_from_dict(payload) == metadata


def test_rule_serialisation_uses_camel_case_keys() -> None:
    rule = make_rule("Hooks", category=RuleCategory.FRAMEWORK)

    payload = rule_to_dict(rule)

    assert payload["packageName"] == "react"
    assert payload["category"] == "framework"
    assert payload["source"] == "repository"
    restored = rule_from_dict(payload)
    assert restored.name == rule.name
    assert restored.category is RuleCategory.FRAMEWORK
    assert restored.content == rule.content


def test_coerce_category_keeps_unknown_labels() -> None:
    assert coerce_category("Testing") is RuleCategory.TESTING
    assert coerce_category("security") == "security"
    assert coerce_category(None) is RuleCategory.DOCUMENTATION


def test_parse_timestamp_handles_zulu_and_naive_values() -> None:
    assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
    assert parse_timestamp("2024-01-02T03:04:05").tzinfo is UTC
    assert parse_timestamp("not a date").tzinfo is not None
