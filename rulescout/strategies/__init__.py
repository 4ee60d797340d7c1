"""Tiered rule discovery strategies."""

from __future__ import annotations

from typing import List

from .base import DiscoveryStrategy, SkipTier, TierOutcome
from .homepage import HomepageManifestStrategy, apex_domain
from .inference import InferenceStrategy, InferredRule
from .repository import RepositoryScanStrategy, resolve_github_repository
from ..config import RuleScoutConfig
from ..github import GitHubClient
from ..llm.runner import LLMRunner
from ..network import HttpClient
from ..secrets import CredentialProvider


def build_default_strategies(
    config: RuleScoutConfig,
    *,
    http: HttpClient,
    github: GitHubClient,
    credentials: CredentialProvider,
) -> List[DiscoveryStrategy]:
    """Return the homepage, repository and inference tiers in fallback order."""
    settings = config.discovery
    llm = config.llm

    def runner_factory(api_key: str) -> LLMRunner:
        kwargs = {} if llm.base_url is None else {"base_url": llm.base_url}
        return LLMRunner(
            llm.model,
            api_key=api_key,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            request_timeout=llm.request_timeout,
            **kwargs,
        )

    return [
        HomepageManifestStrategy(
            http,
            confidence=settings.confidence.direct,
            timeout=settings.homepage_timeout,
        ),
        RepositoryScanStrategy(github, confidence=settings.confidence.repository),
        InferenceStrategy(
            github,
            credentials,
            runner_factory=runner_factory,
            confidence=settings.confidence.inference,
            readme_char_budget=settings.readme_char_budget,
        ),
    ]


__all__ = [
    "DiscoveryStrategy",
    "HomepageManifestStrategy",
    "InferenceStrategy",
    "InferredRule",
    "RepositoryScanStrategy",
    "SkipTier",
    "TierOutcome",
    "apex_domain",
    "build_default_strategies",
    "resolve_github_repository",
]
