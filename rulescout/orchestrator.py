"""Per-dependency discovery pipeline and the bounded-concurrency batch runner."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import ConfigError, RuleScoutConfig, load_config
from .errors import CredentialMissingError, DiscoveryError
from .github import GitHubClient
from .logging import get_logger
from .manifests import read_dependencies, resolve_registry_type
from .models import (
    BatchResult,
    CacheEntry,
    Dependency,
    DiscoveredRule,
    DiscoveryResult,
    PackageMetadata,
    RegistryType,
)
from .network import HttpClient
from .prioritizer import prioritize
from .registries import FetcherRegistry, build_default_registry
from .secrets import CredentialProvider, EnvCredentialProvider
from .stores import ResultCache
from .strategies import DiscoveryStrategy, TierOutcome, build_default_strategies

DEFAULT_CONCURRENCY = 5


@dataclass
class ProjectDiscovery:
    """Batch outcome for a project together with its ranked rule set."""

    root: Path
    dependencies: List[Dependency]
    batch: BatchResult
    rules: List[DiscoveredRule] = field(default_factory=list)


class DiscoveryOrchestrator:
    """Runs registry lookup and tiered rule discovery for dependencies."""

    def __init__(
        self,
        registry: FetcherRegistry,
        strategies: Sequence[DiscoveryStrategy],
        cache: ResultCache | None = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        force_refresh: bool = False,
    ) -> None:
        self.registry = registry
        self.strategies = list(strategies)
        self.cache = cache
        self.concurrency = _check_concurrency(concurrency)
        self.force_refresh = force_refresh
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(
        cls,
        config: RuleScoutConfig,
        *,
        credentials: CredentialProvider | None = None,
        http: HttpClient | None = None,
    ) -> "DiscoveryOrchestrator":
        """Wire the default fetchers, strategies and cache from ``config``."""
        settings = config.discovery
        credentials = credentials or EnvCredentialProvider()
        client = http or HttpClient(
            max_retries=settings.max_retries,
            backoff_base=settings.backoff_base,
            default_timeout=settings.registry_timeout,
        )
        github = GitHubClient(
            client,
            api_url=config.github.api_url,
            token=credentials.get_secret("github"),
            timeout=settings.repository_timeout,
        )
        cache_path = config.cache_path
        return cls(
            build_default_registry(client, timeout=settings.registry_timeout),
            build_default_strategies(config, http=client, github=github, credentials=credentials),
            ResultCache(cache_path) if cache_path is not None else None,
            concurrency=settings.concurrency,
            force_refresh=settings.force_refresh,
        )

    @classmethod
    def for_project(
        cls,
        root: Path,
        *,
        credentials: CredentialProvider | None = None,
        http: HttpClient | None = None,
    ) -> "DiscoveryOrchestrator":
        root = root.expanduser().resolve()
        try:
            config = load_config(root)
        except ConfigError as exc:
            get_logger("orchestrator").warning("Ignoring invalid configuration: %s", exc)
            config = RuleScoutConfig(root=root)
        return cls.from_config(config, credentials=credentials, http=http)

    # ------------------------------------------------------------------
    # Single dependency

    def discover(
        self, dependency: Dependency, *, force_refresh: Optional[bool] = None
    ) -> DiscoveryResult:
        """Run the pipeline for one dependency. Never raises."""
        refresh = self.force_refresh if force_refresh is None else force_refresh
        try:
            return self._discover(dependency, refresh)
        except Exception as exc:
            self.logger.warning("Discovery failed unexpectedly for %s: %s", dependency.name, exc)
            return DiscoveryResult(dependency=dependency, error=str(exc) or type(exc).__name__)

    def _discover(self, dependency: Dependency, force_refresh: bool) -> DiscoveryResult:
        registry_type = resolve_registry_type(dependency)
        fetcher = self.registry.for_package(dependency.name, registry_type)
        if fetcher is None:
            return DiscoveryResult(
                dependency=dependency,
                error=f"No suitable fetcher found for {dependency.name} ({registry_type.value})",
            )

        if not force_refresh:
            cached = self._cache_get(registry_type, dependency.name, dependency.version)
            if cached is not None:
                self.logger.debug(
                    "Cache hit for %s", fetcher.cache_key(dependency.name, dependency.version)
                )
                return DiscoveryResult(
                    dependency=dependency,
                    metadata=cached.metadata,
                    rules=list(cached.rules),
                    from_cache=True,
                )

        try:
            metadata = fetcher.fetch_metadata(dependency.name, dependency.version)
        except DiscoveryError as exc:
            self.logger.info("Metadata fetch failed for %s: %s", dependency.name, exc)
            return DiscoveryResult(dependency=dependency, error=str(exc))

        if not force_refresh and metadata.version != dependency.version:
            cached = self._cache_get(registry_type, metadata.name, metadata.version)
            if cached is not None:
                self.logger.debug(
                    "Cache hit for %s", fetcher.cache_key(metadata.name, metadata.version)
                )
                self._cache_put(registry_type, dependency, cached)
                return DiscoveryResult(
                    dependency=dependency,
                    metadata=cached.metadata,
                    rules=list(cached.rules),
                    from_cache=True,
                )

        try:
            rules, outcomes = self.run_tiers(metadata)
        except Exception as exc:
            self.logger.warning("Rule discovery failed for %s: %s", metadata.name, exc)
            return DiscoveryResult(dependency=dependency, metadata=metadata, error=str(exc))

        if _cacheable(rules, outcomes):
            entry = CacheEntry(metadata=metadata, rules=list(rules), fetched_at=datetime.now(UTC))
            self._cache_put(registry_type, dependency, entry)
        return DiscoveryResult(dependency=dependency, metadata=metadata, rules=rules)

    def run_tiers(
        self, metadata: PackageMetadata
    ) -> Tuple[List[DiscoveredRule], List[TierOutcome]]:
        """Run strategies in order, stopping at the first tier that yields rules."""
        outcomes: List[TierOutcome] = []
        for strategy in self.strategies:
            outcome = strategy.run(metadata)
            outcomes.append(outcome)
            if outcome.found:
                self.logger.debug(
                    "%s tier produced %d rule(s) for %s",
                    outcome.tier,
                    len(outcome.rules),
                    metadata.name,
                )
                return list(outcome.rules), outcomes
            if outcome.error is not None and not outcome.skipped:
                self.logger.info(
                    "%s tier failed for %s; falling back: %s",
                    outcome.tier,
                    metadata.name,
                    outcome.error,
                )
        self.logger.debug("No tier produced rules for %s", metadata.name)
        return [], outcomes

    # ------------------------------------------------------------------
    # Batches

    def discover_many(
        self,
        dependencies: Iterable[Dependency],
        *,
        concurrency: Optional[int] = None,
        force_refresh: Optional[bool] = None,
    ) -> BatchResult:
        """Discover rules for every dependency with at most ``concurrency`` in flight.

        Every dependency yields exactly one DiscoveryResult; a failure in one
        never cancels the others. Result order follows completion order.
        """
        items = list(dependencies)
        limit = self.concurrency if concurrency is None else concurrency
        if limit < 1:
            self.logger.warning("Concurrency %d is below 1; running one dependency at a time", limit)
            limit = 1
        results: List[DiscoveryResult] = []
        if items:
            with ThreadPoolExecutor(max_workers=limit, thread_name_prefix="rulescout") as pool:
                futures: Dict[Future[DiscoveryResult], Dependency] = {
                    pool.submit(self.discover, dependency, force_refresh=force_refresh): dependency
                    for dependency in items
                }
                for future in as_completed(futures):
                    dependency = futures[future]
                    try:
                        results.append(future.result())
                    except Exception as exc:
                        results.append(DiscoveryResult(dependency=dependency, error=str(exc)))

        batch = BatchResult.from_results(results)
        stats = batch.stats
        self.logger.info(
            "Processed %d dependencies: %d with rules, %d failed, %d rules total",
            stats.processed,
            stats.successful,
            stats.failed,
            stats.total_rules,
        )
        return batch

    def discover_project(
        self, root: Path, *, force_refresh: Optional[bool] = None
    ) -> ProjectDiscovery:
        """Read the project's manifests, run the batch and rank the resulting rules."""
        root = root.expanduser().resolve()
        dependencies = read_dependencies(root)
        self.logger.info("Found %d dependencies in %s", len(dependencies), root)
        batch = self.discover_many(dependencies, force_refresh=force_refresh)
        return ProjectDiscovery(
            root=root,
            dependencies=dependencies,
            batch=batch,
            rules=prioritize(batch.all_rules()),
        )

    # ------------------------------------------------------------------
    # Cache helpers

    def _cache_get(
        self, registry_type: RegistryType, name: str, version: str
    ) -> Optional[CacheEntry]:
        if self.cache is None:
            return None
        return self.cache.get(registry_type, name, version)

    def _cache_put(
        self, registry_type: RegistryType, dependency: Dependency, entry: CacheEntry
    ) -> None:
        if self.cache is None:
            return
        # Stored under the requested spec and the resolved version so both lookups hit.
        resolved = entry.metadata
        try:
            self.cache.put(registry_type, dependency.name, dependency.version, entry)
            if (resolved.name, resolved.version) != (dependency.name, dependency.version):
                self.cache.put(registry_type, resolved.name, resolved.version, entry)
        except OSError as exc:
            self.logger.warning("Could not persist cache entry for %s: %s", dependency.name, exc)


def _cacheable(rules: Sequence[DiscoveredRule], outcomes: Sequence[TierOutcome]) -> bool:
    """Tier failures and credential-gated empty runs are retried on the next run."""
    if any(outcome.error is not None and not outcome.skipped for outcome in outcomes):
        return False
    if not rules and any(
        isinstance(outcome.error, CredentialMissingError) for outcome in outcomes
    ):
        return False
    return True


def _check_concurrency(value: int) -> int:
    if value < 1:
        raise ValueError(f"concurrency must be at least 1, got {value}")
    return value


__all__ = ["DEFAULT_CONCURRENCY", "DiscoveryOrchestrator", "ProjectDiscovery"]
