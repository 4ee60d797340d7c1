"""Inference tier: asks a language model to summarise README guidance."""

from __future__ import annotations

import textwrap
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from .base import DiscoveryStrategy, SkipTier, guess_category
from .repository import resolve_github_repository
from ..errors import CredentialMissingError, ModelInferenceError, NotFoundError
from ..github import GitHubClient
from ..llm.runner import LLMRunner
from ..models import DiscoveredRule, PackageMetadata, RuleSource
from ..secrets import CredentialProvider

SYSTEM_PROMPT = (
    "You write concise usage rules for an AI pair-programming assistant. "
    "Respond only with JSON matching the requested schema."
)


class InferredRule(BaseModel):
    """Structured output contract for the model completion."""

    rule: str = Field(min_length=1, description="Markdown guidance for using the package.")


RunnerFactory = Callable[[str], LLMRunner]


class InferenceStrategy(DiscoveryStrategy):
    """Lowest-confidence tier; only runs when a model credential is configured."""

    tier = "inference"
    credential_name = "openai"

    def __init__(
        self,
        github: GitHubClient | None = None,
        credentials: CredentialProvider | None = None,
        *,
        runner_factory: RunnerFactory | None = None,
        confidence: float = 0.5,
        readme_char_budget: int = 4000,
    ) -> None:
        super().__init__(confidence=confidence)
        self.github = github or GitHubClient()
        self.credentials = credentials
        self.runner_factory = runner_factory or (lambda api_key: LLMRunner(api_key=api_key))
        self.readme_char_budget = readme_char_budget

    def discover(self, metadata: PackageMetadata) -> List[DiscoveredRule]:
        api_key = self._api_key()
        ref = resolve_github_repository(metadata)
        try:
            readme = self.github.get_readme(ref.owner, ref.repo)
        except NotFoundError as exc:
            raise SkipTier(f"{ref.slug} has no README") from exc
        if not readme.strip():
            raise SkipTier(f"{ref.slug} README is empty")

        runner = self.runner_factory(api_key)
        prompt = build_prompt(metadata, readme[: self.readme_char_budget])
        result = runner.complete(prompt, InferredRule, system=SYSTEM_PROMPT)
        markdown = result.rule.strip()
        if not markdown:
            raise ModelInferenceError(f"Model returned an empty rule for {metadata.name}")

        return [
            self.make_rule(
                metadata,
                name=f"{metadata.name} Usage Guidelines",
                description=f"Model-inferred usage guidance for {metadata.name} from its README.",
                markdown=markdown,
                source=RuleSource.INFERENCE,
                category=guess_category(metadata),
                tags=["inferred", metadata.name],
            )
        ]

    def _api_key(self) -> str:
        api_key: Optional[str] = None
        if self.credentials is not None:
            api_key = self.credentials.get_secret(self.credential_name)
        if not api_key:
            raise CredentialMissingError(f"No {self.credential_name} credential configured")
        return api_key


def build_prompt(metadata: PackageMetadata, readme: str) -> str:
    return textwrap.dedent(
        """\
        Write a single Markdown rule that tells an AI coding assistant how to use
        this library well: setup, the most common usage patterns, and pitfalls.

        Package: {name}
        Version: {version}
        Description: {description}
        Homepage: {homepage}

        README (truncated):
        ```
        {readme}
        ```

        Return JSON of the form {{"rule": "<markdown>"}}.
        """
    ).format(
        name=metadata.name,
        version=metadata.version,
        description=metadata.description or "No description available",
        homepage=metadata.homepage or "No homepage available",
        readme=readme,
    )


__all__ = ["InferenceStrategy", "InferredRule", "build_prompt"]
