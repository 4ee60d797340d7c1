"""Tests for the homepage llms.txt tier."""

from __future__ import annotations

import pytest

from rulescout.errors import NetworkError
from rulescout.models import RuleCategory, RuleSource
from rulescout.strategies import HomepageManifestStrategy, apex_domain
from tests._fixtures.fakes import FakeHttpClient, make_metadata


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://react.dev", "react.dev"),
        ("https://docs.example.com/x", "example.com"),
        ("https://a.b.example.com", "example.com"),
        ("http://www.example.org:8080/path?q=1", "example.org"),
        ("example.com/docs", "example.com"),
        ("http://127.0.0.1:3000", "127.0.0.1"),
        ("http://localhost", "localhost"),
        ("", None),
        (None, None),
    ],
)
def test_apex_domain(url, expected) -> None:
    assert apex_domain(url) == expected


def test_llms_txt_becomes_single_direct_rule() -> None:
    http = FakeHttpClient({"https://react.dev/llms.txt": "# React docs"})
    strategy = HomepageManifestStrategy(http)

    outcome = strategy.run(make_metadata(homepage="https://react.dev", inferred_framework="react"))

    assert outcome.found and outcome.error is None
    (rule,) = outcome.rules
    assert rule.source is RuleSource.DIRECT
    assert rule.confidence == 0.9
    assert rule.category is RuleCategory.DOCUMENTATION
    assert rule.content.markdown == "# React docs"
    assert rule.package_name == "react" and rule.package_version == "18.2.0"
    assert rule.targeting.frameworks == ["react"]
    assert rule.id.startswith("homepage-react-")


def test_subdomain_homepage_fetches_apex_manifest() -> None:
    http = FakeHttpClient({"https://example.com/llms.txt": "guidance"})

    HomepageManifestStrategy(http).run(make_metadata(homepage="https://docs.example.com/guide"))

    assert http.calls == ["https://example.com/llms.txt"]


def test_missing_homepage_skips_without_network() -> None:
    http = FakeHttpClient()

    outcome = HomepageManifestStrategy(http).run(make_metadata(homepage=None))

    assert outcome.skipped and not outcome.found
    assert http.calls == []


def test_not_found_and_empty_body_yield_nothing() -> None:
    missing = HomepageManifestStrategy(FakeHttpClient()).run(
        make_metadata(homepage="https://leftpad.io")
    )
    empty = HomepageManifestStrategy(FakeHttpClient({"https://leftpad.io/llms.txt": "  \n"})).run(
        make_metadata(homepage="https://leftpad.io")
    )

    for outcome in (missing, empty):
        assert outcome.rules == [] and outcome.error is None and not outcome.skipped


def test_network_failure_is_captured_in_outcome() -> None:
    http = FakeHttpClient({"https://react.dev/llms.txt": NetworkError("timed out")})

    outcome = HomepageManifestStrategy(http).run(make_metadata(homepage="https://react.dev"))

    assert outcome.rules == []
    assert isinstance(outcome.error, NetworkError)
    assert not outcome.skipped


def test_confidence_is_configurable_and_validated() -> None:
    http = FakeHttpClient({"https://react.dev/llms.txt": "# docs"})
    outcome = HomepageManifestStrategy(http, confidence=0.95).run(
        make_metadata(homepage="https://react.dev")
    )

    assert outcome.rules[0].confidence == 0.95
    with pytest.raises(ValueError):
        HomepageManifestStrategy(http, confidence=1.5)
