"""Repository scan tier: reads rule artifacts committed to the package repository."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Dict, Iterable, List, Optional

from .base import DiscoveryStrategy, SkipTier, default_targeting, guess_category
from ..errors import DiscoveryError, NotFoundError
from ..github import GitHubClient, RepositoryRef, parse_repository_url
from ..models import (
    DiscoveredRule,
    PackageMetadata,
    RuleCategory,
    RuleExample,
    RuleSource,
    RuleTargeting,
    coerce_category,
)

RULES_DIRECTORY = ".vibe"
TOOL_CONFIG_FILES = (".cursorrules",)


class RepositoryScanStrategy(DiscoveryStrategy):
    """Maps ``.vibe/`` rule files and root tool configs into discovered rules."""

    tier = "repository"

    def __init__(self, github: GitHubClient | None = None, *, confidence: float = 0.7) -> None:
        super().__init__(confidence=confidence)
        self.github = github or GitHubClient()

    def discover(self, metadata: PackageMetadata) -> List[DiscoveredRule]:
        ref = resolve_github_repository(metadata)
        rules = self._scan_rules_directory(ref, metadata)
        for filename in TOOL_CONFIG_FILES:
            rules.extend(self._scan_tool_config(ref, filename, metadata))
        return rules

    def _scan_rules_directory(
        self, ref: RepositoryRef, metadata: PackageMetadata
    ) -> List[DiscoveredRule]:
        try:
            entries = self.github.list_directory(ref.owner, ref.repo, RULES_DIRECTORY)
        except NotFoundError:
            return []

        rules: List[DiscoveredRule] = []
        for entry in entries:
            if entry.get("type") != "file" or not entry.get("download_url"):
                continue
            name = str(entry.get("name", ""))
            url = str(entry["download_url"])
            try:
                if name.endswith(".json"):
                    rules.extend(self._rules_from_json(self.github.download(url), metadata))
                elif name.endswith(".md"):
                    rules.extend(self._rules_from_markdown(name, self.github.download_text(url), metadata))
            except DiscoveryError as exc:
                self.logger.debug("Skipping %s/%s in %s: %s", RULES_DIRECTORY, name, ref.slug, exc)
        return rules

    def _scan_tool_config(
        self, ref: RepositoryRef, filename: str, metadata: PackageMetadata
    ) -> List[DiscoveredRule]:
        try:
            content = self.github.get_file(ref.owner, ref.repo, filename)
        except NotFoundError:
            return []
        if not content.strip():
            return []
        return [
            self.make_rule(
                metadata,
                name=f"{metadata.name} {filename} Guidelines",
                description=f"Assistant guidelines committed to {ref.slug}/{filename}.",
                markdown=content,
                source=RuleSource.REPOSITORY,
                category=RuleCategory.TOOLING,
                tags=[filename.lstrip("."), metadata.name],
            )
        ]

    def _rules_from_json(self, payload: Any, metadata: PackageMetadata) -> List[DiscoveredRule]:
        rules: List[DiscoveredRule] = []
        for item in _iter_rule_objects(payload):
            rule = self._rule_from_object(item, metadata)
            if rule is not None:
                rules.append(rule)
        return rules

    def _rule_from_object(
        self, item: Dict[str, Any], metadata: PackageMetadata
    ) -> Optional[DiscoveredRule]:
        header = item.get("metadata") if isinstance(item.get("metadata"), dict) else item
        content = item.get("content")
        if isinstance(content, dict):
            markdown = content.get("markdown")
            tags = content.get("tags")
            examples = content.get("examples")
        else:
            markdown = content if isinstance(content, str) else item.get("markdown")
            tags = item.get("tags")
            examples = item.get("examples")
        name = header.get("name")
        if not isinstance(name, str) or not name.strip() or not isinstance(markdown, str):
            return None

        category = item.get("category") or header.get("category")
        return self.make_rule(
            metadata,
            name=name.strip(),
            description=str(header.get("description") or ""),
            markdown=markdown,
            source=RuleSource.REPOSITORY,
            category=coerce_category(category) if category else guess_category(metadata),
            tags=[str(tag) for tag in tags or [] if isinstance(tag, str)],
            examples=_examples(examples),
            targeting=_targeting(item.get("targeting"), metadata),
        )

    def _rules_from_markdown(
        self, filename: str, markdown: str, metadata: PackageMetadata
    ) -> List[DiscoveredRule]:
        if not markdown.strip():
            return []
        title = PurePosixPath(filename).stem.replace("-", " ").replace("_", " ").strip()
        return [
            self.make_rule(
                metadata,
                name=title.title() or metadata.name,
                description=f"{metadata.name} rule from {RULES_DIRECTORY}/{filename}.",
                markdown=markdown,
                source=RuleSource.REPOSITORY,
                category=guess_category(metadata),
                tags=[metadata.name],
            )
        ]


def resolve_github_repository(metadata: PackageMetadata) -> RepositoryRef:
    """Return the GitHub owner/repo for ``metadata`` or raise SkipTier."""
    if metadata.repository is None:
        raise SkipTier(f"{metadata.name} does not declare a repository")
    ref = parse_repository_url(metadata.repository.url)
    if ref is None:
        raise SkipTier(f"Unrecognised repository URL {metadata.repository.url}")
    if ref.host != "github.com":
        raise SkipTier(f"Repository host {ref.host} is not supported")
    return ref


def _iter_rule_objects(payload: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(payload, dict) and isinstance(payload.get("rules"), list):
        payload = payload["rules"]
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


def _targeting(value: Any, metadata: PackageMetadata) -> RuleTargeting:
    if not isinstance(value, dict):
        return default_targeting(metadata)
    fallback = default_targeting(metadata)

    def _list(key: str, default: List[str]) -> List[str]:
        items = value.get(key)
        if isinstance(items, list):
            return [str(item) for item in items if isinstance(item, str)]
        return list(default)

    return RuleTargeting(
        languages=_list("languages", fallback.languages),
        frameworks=_list("frameworks", fallback.frameworks),
        files=_list("files", fallback.files),
        contexts=_list("contexts", fallback.contexts),
    )


def _examples(value: Any) -> List[RuleExample]:
    examples: List[RuleExample] = []
    if not isinstance(value, list):
        return examples
    for item in value:
        if isinstance(item, dict) and isinstance(item.get("code"), str):
            examples.append(
                RuleExample(
                    title=str(item.get("title") or item.get("description") or "Code Example"),
                    code=item["code"],
                    language=str(item.get("language") or ""),
                )
            )
    return examples


__all__ = ["RepositoryScanStrategy", "resolve_github_repository"]
