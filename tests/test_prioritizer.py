"""Tests for rule ranking and de-duplication."""

from __future__ import annotations

import random

from rulescout.models import RuleCategory
from rulescout.prioritizer import CATEGORY_PRIORITY, category_priority, prioritize
from tests._fixtures.fakes import make_rule


def test_orders_by_confidence_then_category() -> None:
    rules = [
        make_rule("docs", confidence=0.9, category=RuleCategory.DOCUMENTATION),
        make_rule("tooling", confidence=0.7, category=RuleCategory.TOOLING),
        make_rule("framework", confidence=0.7, category=RuleCategory.FRAMEWORK),
        make_rule("inferred", confidence=0.5, category=RuleCategory.FRAMEWORK),
        make_rule("custom", confidence=0.7, category="security"),
    ]

    ordered = [rule.name for rule in prioritize(rules)]

    assert ordered == ["docs", "framework", "tooling", "custom", "inferred"]


def test_deduplicates_by_name_and_package_first_seen_wins() -> None:
    rules = [
        make_rule("Hooks", package="react", confidence=0.5, rule_id="low"),
        make_rule("Hooks", package="react", confidence=0.9, rule_id="high"),
        make_rule("Hooks", package="preact", confidence=0.7, rule_id="other-package"),
        make_rule("Hooks", package="react", confidence=0.9, rule_id="high-duplicate"),
    ]

    result = prioritize(rules)

    assert [rule.id for rule in result] == ["high", "other-package"]


def test_ties_keep_input_order() -> None:
    rules = [make_rule(f"rule-{index}", confidence=0.7) for index in range(5)]

    assert prioritize(rules) == rules


def test_prioritize_is_idempotent_and_deterministic() -> None:
    categories = list(RuleCategory) + ["unknown"]
    generator = random.Random(7)
    rules = [
        make_rule(
            f"rule-{generator.randint(0, 15)}",
            package=generator.choice(["a", "b"]),
            confidence=generator.choice([0.5, 0.7, 0.9]),
            category=generator.choice(categories),
            rule_id=f"id-{index}",
        )
        for index in range(60)
    ]

    once = prioritize(rules)

    assert prioritize(once) == once
    assert all(prioritize(rules) == once for _ in range(5))


def test_empty_input_and_category_table() -> None:
    assert prioritize([]) == []
    assert category_priority(RuleCategory.FRAMEWORK) == CATEGORY_PRIORITY["framework"] == 10
    assert category_priority("documentation") == 5
    assert category_priority("unknown") == 0
