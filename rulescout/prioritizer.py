"""Ranking and de-duplication of discovered rules."""

from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from .models import DiscoveredRule, RuleCategory

CATEGORY_PRIORITY: Dict[str, int] = {
    RuleCategory.FRAMEWORK.value: 10,
    RuleCategory.LANGUAGE.value: 9,
    RuleCategory.TESTING.value: 8,
    RuleCategory.BUILD.value: 7,
    RuleCategory.TOOLING.value: 6,
    RuleCategory.DOCUMENTATION.value: 5,
}


def category_priority(category: RuleCategory | str) -> int:
    key = category.value if isinstance(category, RuleCategory) else str(category)
    return CATEGORY_PRIORITY.get(key, 0)


def prioritize(rules: Iterable[DiscoveredRule]) -> List[DiscoveredRule]:
    """Order rules by confidence then category, keeping the first of each name/package pair.

    ``sorted`` is stable, so rules that tie on both keys keep their input order
    and the result is deterministic. Applying the function to its own output
    returns the same list.
    """
    ranked = sorted(
        rules,
        key=lambda rule: (-rule.confidence, -category_priority(rule.category)),
    )
    seen: Set[Tuple[str, str]] = set()
    result: List[DiscoveredRule] = []
    for rule in ranked:
        key = (rule.name, rule.package_name)
        if key in seen:
            continue
        seen.add(key)
        result.append(rule)
    return result


__all__ = ["CATEGORY_PRIORITY", "category_priority", "prioritize"]
