"""Base classes for tiered rule discovery strategies."""

from __future__ import annotations

import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import CredentialMissingError, DiscoveryError, ModelInferenceError, NotFoundError
from ..logging import get_logger
from ..models import (
    DiscoveredRule,
    PackageMetadata,
    RuleCategory,
    RuleContent,
    RuleExample,
    RuleSource,
    RuleTargeting,
)

_SLUG = re.compile(r"[^a-z0-9]+")

_BUILD_KEYWORDS = {"build", "bundler", "webpack", "vite", "rollup", "esbuild", "compiler"}
_TOOLING_KEYWORDS = {"lint", "linter", "eslint", "formatter", "prettier", "cli"}
_TESTING_KEYWORDS = {"test", "testing", "jest", "mocha", "vitest", "pytest"}


@dataclass
class TierOutcome:
    """Typed result of one strategy invocation.

    ``rules`` is empty whenever ``error`` is set. ``skipped`` marks tiers that
    could not run at all (no homepage, no credential) as opposed to tiers that
    ran and found nothing.
    """

    tier: str
    rules: List[DiscoveredRule] = field(default_factory=list)
    error: Optional[DiscoveryError] = None
    skipped: bool = False

    @property
    def found(self) -> bool:
        return bool(self.rules)


class DiscoveryStrategy(ABC):
    """Contract for one tier of the discovery fallback chain."""

    tier: str = ""

    def __init__(self, *, confidence: float) -> None:
        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {confidence}")
        self.confidence = confidence
        self.logger = get_logger(f"strategies.{self.tier}")

    def run(self, metadata: PackageMetadata) -> TierOutcome:
        """Execute the tier, converting every failure into a TierOutcome."""
        try:
            rules = self.discover(metadata)
        except (CredentialMissingError, ModelInferenceError, SkipTier) as exc:
            self.logger.debug("%s tier skipped for %s: %s", self.tier, metadata.name, exc)
            return TierOutcome(tier=self.tier, error=exc, skipped=True)
        except NotFoundError as exc:
            self.logger.debug("%s tier found nothing for %s: %s", self.tier, metadata.name, exc)
            return TierOutcome(tier=self.tier)
        except DiscoveryError as exc:
            self.logger.debug("%s tier failed for %s: %s", self.tier, metadata.name, exc)
            return TierOutcome(tier=self.tier, error=exc)
        except Exception as exc:
            self.logger.warning(
                "%s tier raised unexpectedly for %s: %s", self.tier, metadata.name, exc
            )
            return TierOutcome(tier=self.tier, error=DiscoveryError(str(exc)))
        return TierOutcome(tier=self.tier, rules=list(rules))

    @abstractmethod
    def discover(self, metadata: PackageMetadata) -> List[DiscoveredRule]:
        """Return rules for the package; raise DiscoveryError subclasses on failure."""

    def make_rule(
        self,
        metadata: PackageMetadata,
        *,
        name: str,
        description: str,
        markdown: str,
        source: RuleSource,
        category: RuleCategory | str,
        tags: List[str] | None = None,
        examples: List[RuleExample] | None = None,
        targeting: RuleTargeting | None = None,
    ) -> DiscoveredRule:
        return DiscoveredRule(
            id=f"{self.tier}-{slugify(metadata.name)}-{uuid.uuid4().hex}",
            name=name,
            description=description,
            confidence=self.confidence,
            source=source,
            package_name=metadata.name,
            package_version=metadata.version,
            category=category,
            content=RuleContent(
                markdown=markdown, examples=list(examples or []), tags=list(tags or [])
            ),
            targeting=targeting or default_targeting(metadata),
        )


class SkipTier(DiscoveryError):
    """Raised by a strategy when its preconditions are not met."""


def slugify(value: str) -> str:
    return _SLUG.sub("-", value.lower()).strip("-") or "package"


def default_targeting(metadata: PackageMetadata) -> RuleTargeting:
    frameworks = []
    if metadata.inferred_framework and metadata.inferred_framework != "testing":
        frameworks.append(metadata.inferred_framework)
    return RuleTargeting(frameworks=frameworks, contexts=["development"])


def guess_category(metadata: PackageMetadata) -> RuleCategory:
    """Pick a rule category from the package's framework and keywords."""
    keywords = {keyword.lower() for keyword in metadata.keywords}
    if metadata.inferred_framework == "testing" or keywords & _TESTING_KEYWORDS:
        return RuleCategory.TESTING
    if metadata.inferred_framework:
        return RuleCategory.FRAMEWORK
    if keywords & _BUILD_KEYWORDS:
        return RuleCategory.BUILD
    if keywords & _TOOLING_KEYWORDS:
        return RuleCategory.TOOLING
    return RuleCategory.DOCUMENTATION


__all__ = [
    "DiscoveryStrategy",
    "SkipTier",
    "TierOutcome",
    "default_targeting",
    "guess_category",
    "slugify",
]
