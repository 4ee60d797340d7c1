"""Core data models shared across rulescout components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class RegistryType(str, Enum):
    """Package registries a dependency can be resolved against."""

    NPM = "npm"
    JSR = "jsr"
    PYPI = "pypi"
    CARGO = "cargo"
    GO = "go"
    COMPOSER = "composer"


class DependencyType(str, Enum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"
    PEER = "peer"
    OPTIONAL = "optional"


class RuleSource(str, Enum):
    """Where a discovered rule came from."""

    REGISTRY = "registry"
    REPOSITORY = "repository"
    DIRECT = "direct"
    INFERENCE = "inference"


class RuleCategory(str, Enum):
    FRAMEWORK = "framework"
    LANGUAGE = "language"
    TESTING = "testing"
    BUILD = "build"
    TOOLING = "tooling"
    DOCUMENTATION = "documentation"


@dataclass(frozen=True)
class Dependency:
    """A dependency declared in a project manifest."""

    name: str
    version: str
    source: str
    type: DependencyType = DependencyType.PRODUCTION
    registry: Optional[RegistryType] = None


@dataclass(frozen=True)
class Repository:
    type: str
    url: str


@dataclass(frozen=True)
class Maintainer:
    name: str
    email: Optional[str] = None


@dataclass(frozen=True)
class PackageMetadata:
    """Normalized package facts returned by a registry fetcher."""

    name: str
    version: str
    published_at: datetime
    description: Optional[str] = None
    homepage: Optional[str] = None
    repository: Optional[Repository] = None
    license: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    maintainers: List[Maintainer] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    peer_dependencies: Dict[str, str] = field(default_factory=dict)
    inferred_framework: Optional[str] = None


@dataclass(frozen=True)
class RuleExample:
    title: str
    code: str
    language: str


@dataclass(frozen=True)
class RuleContent:
    markdown: str
    examples: List[RuleExample] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RuleTargeting:
    languages: List[str] = field(default_factory=list)
    frameworks: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    contexts: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DiscoveredRule:
    """A unit of usage guidance produced by one discovery strategy."""

    id: str
    name: str
    description: str
    confidence: float
    source: RuleSource
    package_name: str
    package_version: str
    category: RuleCategory | str
    content: RuleContent
    targeting: RuleTargeting = field(default_factory=RuleTargeting)
    discovered_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class DiscoveryResult:
    """Outcome of running the pipeline for a single dependency."""

    dependency: Dependency
    metadata: Optional[PackageMetadata] = None
    rules: List[DiscoveredRule] = field(default_factory=list)
    error: Optional[str] = None
    from_cache: bool = False


@dataclass
class BatchStats:
    processed: int = 0
    successful: int = 0
    failed: int = 0
    total_rules: int = 0


@dataclass
class BatchResult:
    """Aggregate of a batch run, partitioned into successes and failures."""

    successful: List[DiscoveryResult] = field(default_factory=list)
    failed: List[DiscoveryResult] = field(default_factory=list)
    total_rules: int = 0
    stats: BatchStats = field(default_factory=BatchStats)

    @classmethod
    def from_results(cls, results: List[DiscoveryResult]) -> "BatchResult":
        successful = [result for result in results if result.rules]
        failed = [result for result in results if result.error is not None]
        total_rules = sum(len(result.rules) for result in successful)
        return cls(
            successful=successful,
            failed=failed,
            total_rules=total_rules,
            stats=BatchStats(
                processed=len(results),
                successful=len(successful),
                failed=len(failed),
                total_rules=total_rules,
            ),
        )

    def all_rules(self) -> List[DiscoveredRule]:
        return [rule for result in self.successful for rule in result.rules]


@dataclass(frozen=True)
class CacheEntry:
    metadata: PackageMetadata
    rules: List[DiscoveredRule]
    fetched_at: datetime


# ----------------------------------------------------------------------
# Serialisation helpers used by the result cache and the CLI


def _timestamp(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: object) -> datetime:
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return datetime.now(UTC)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    return datetime.now(UTC)


def metadata_to_dict(metadata: PackageMetadata) -> Dict[str, Any]:
    return {
        "name": metadata.name,
        "version": metadata.version,
        "description": metadata.description,
        "homepage": metadata.homepage,
        "repository": (
            {"type": metadata.repository.type, "url": metadata.repository.url}
            if metadata.repository
            else None
        ),
        "license": metadata.license,
        "keywords": list(metadata.keywords),
        "maintainers": [
            {"name": maintainer.name, "email": maintainer.email}
            for maintainer in metadata.maintainers
        ],
        "dependencies": dict(metadata.dependencies),
        "peerDependencies": dict(metadata.peer_dependencies),
        "publishedAt": _timestamp(metadata.published_at),
        "inferredFramework": metadata.inferred_framework,
    }


def metadata_from_dict(payload: Mapping[str, Any]) -> PackageMetadata:
    repository = payload.get("repository")
    maintainers = payload.get("maintainers") or []
    return PackageMetadata(
        name=str(payload["name"]),
        version=str(payload["version"]),
        published_at=parse_timestamp(payload.get("publishedAt")),
        description=payload.get("description"),
        homepage=payload.get("homepage"),
        repository=(
            Repository(type=str(repository.get("type", "git")), url=str(repository["url"]))
            if isinstance(repository, dict) and repository.get("url")
            else None
        ),
        license=payload.get("license"),
        keywords=[str(item) for item in payload.get("keywords") or []],
        maintainers=[
            Maintainer(name=str(item["name"]), email=item.get("email"))
            for item in maintainers
            if isinstance(item, dict) and item.get("name")
        ],
        dependencies=dict(payload.get("dependencies") or {}),
        peer_dependencies=dict(payload.get("peerDependencies") or {}),
        inferred_framework=payload.get("inferredFramework"),
    )


def rule_to_dict(rule: DiscoveredRule) -> Dict[str, Any]:
    category = rule.category.value if isinstance(rule.category, RuleCategory) else rule.category
    return {
        "id": rule.id,
        "name": rule.name,
        "description": rule.description,
        "confidence": rule.confidence,
        "source": rule.source.value,
        "packageName": rule.package_name,
        "packageVersion": rule.package_version,
        "category": category,
        "content": {
            "markdown": rule.content.markdown,
            "examples": [
                {"title": example.title, "code": example.code, "language": example.language}
                for example in rule.content.examples
            ],
            "tags": list(rule.content.tags),
        },
        "targeting": {
            "languages": list(rule.targeting.languages),
            "frameworks": list(rule.targeting.frameworks),
            "files": list(rule.targeting.files),
            "contexts": list(rule.targeting.contexts),
        },
        "discoveredAt": _timestamp(rule.discovered_at),
    }


def rule_from_dict(payload: Mapping[str, Any]) -> DiscoveredRule:
    content = payload.get("content") or {}
    targeting = payload.get("targeting") or {}
    return DiscoveredRule(
        id=str(payload["id"]),
        name=str(payload["name"]),
        description=str(payload.get("description", "")),
        confidence=float(payload["confidence"]),
        source=RuleSource(payload["source"]),
        package_name=str(payload["packageName"]),
        package_version=str(payload["packageVersion"]),
        category=coerce_category(payload.get("category")),
        content=RuleContent(
            markdown=str(content.get("markdown", "")),
            examples=[
                RuleExample(
                    title=str(example.get("title", "")),
                    code=str(example.get("code", "")),
                    language=str(example.get("language", "")),
                )
                for example in content.get("examples") or []
                if isinstance(example, dict)
            ],
            tags=[str(tag) for tag in content.get("tags") or []],
        ),
        targeting=RuleTargeting(
            languages=[str(item) for item in targeting.get("languages") or []],
            frameworks=[str(item) for item in targeting.get("frameworks") or []],
            files=[str(item) for item in targeting.get("files") or []],
            contexts=[str(item) for item in targeting.get("contexts") or []],
        ),
        discovered_at=parse_timestamp(payload.get("discoveredAt")),
    )


def coerce_category(value: object) -> RuleCategory | str:
    """Return the matching RuleCategory, keeping unrecognised labels as plain strings."""
    if isinstance(value, RuleCategory):
        return value
    text = str(value or RuleCategory.DOCUMENTATION.value).lower()
    try:
        return RuleCategory(text)
    except ValueError:
        return text


__all__ = [
    "BatchResult",
    "BatchStats",
    "CacheEntry",
    "Dependency",
    "DependencyType",
    "DiscoveredRule",
    "DiscoveryResult",
    "Maintainer",
    "PackageMetadata",
    "RegistryType",
    "Repository",
    "RuleCategory",
    "RuleContent",
    "RuleExample",
    "RuleSource",
    "RuleTargeting",
    "coerce_category",
    "parse_timestamp",
    "metadata_from_dict",
    "metadata_to_dict",
    "rule_from_dict",
    "rule_to_dict",
]
