"""Configuration loading for rulescout (.rulescout.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".rulescout.yml"
DEFAULT_CACHE_PATH = ".vibe/cache/discovery.json"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ConfidenceWeights:
    """Confidence assigned to rules produced by each discovery tier."""

    direct: float = 0.9
    repository: float = 0.7
    inference: float = 0.5


@dataclass
class DiscoverySettings:
    """Batch and network settings for the discovery pipeline."""

    concurrency: int = 5
    force_refresh: bool = False
    registry_timeout: float = 5.0
    homepage_timeout: float = 5.0
    repository_timeout: float = 10.0
    max_retries: int = 2
    backoff_base: float = 0.5
    readme_char_budget: int = 4000
    confidence: ConfidenceWeights = field(default_factory=ConfidenceWeights)


@dataclass
class GitHubSettings:
    api_url: str = "https://api.github.com"


@dataclass
class LLMConfig:
    """LLM runtime settings from .rulescout.yml."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    temperature: Optional[float] = 0.2
    max_tokens: Optional[int] = 1024
    request_timeout: Optional[float] = 60.0


@dataclass
class CacheSettings:
    path: Optional[str] = DEFAULT_CACHE_PATH
    enabled: bool = True


@dataclass
class RuleScoutConfig:
    """Represents the high-level settings defined in .rulescout.yml."""

    root: Path
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    github: GitHubSettings = field(default_factory=GitHubSettings)
    llm: LLMConfig = field(default_factory=LLMConfig)
    cache: CacheSettings = field(default_factory=CacheSettings)

    @property
    def cache_path(self) -> Optional[Path]:
        if not self.cache.enabled or not self.cache.path:
            return None
        path = Path(self.cache.path).expanduser()
        return path if path.is_absolute() else self.root / path


def load_config(config_path: Path) -> RuleScoutConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RuleScoutConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    return RuleScoutConfig(
        root=root,
        discovery=_discovery_settings(_as_dict(data.get("discovery"))),
        github=_github_settings(_as_dict(data.get("github"))),
        llm=_llm_config(_as_dict(data.get("llm"))),
        cache=_cache_settings(data.get("cache")),
    )


def _discovery_settings(data: Dict[str, Any]) -> DiscoverySettings:
    defaults = DiscoverySettings()
    concurrency = _as_int(data.get("concurrency"))
    if concurrency is not None and concurrency < 1:
        raise ConfigError("discovery.concurrency must be at least 1")

    weights_data = _as_dict(data.get("confidence"))
    weights = ConfidenceWeights(
        direct=_weight(weights_data, "direct", defaults.confidence.direct),
        repository=_weight(weights_data, "repository", defaults.confidence.repository),
        inference=_weight(weights_data, "inference", defaults.confidence.inference),
    )

    return DiscoverySettings(
        concurrency=concurrency or defaults.concurrency,
        force_refresh=_as_bool(data.get("force_refresh")) or False,
        registry_timeout=_or(_as_float(data.get("registry_timeout")), defaults.registry_timeout),
        homepage_timeout=_or(_as_float(data.get("homepage_timeout")), defaults.homepage_timeout),
        repository_timeout=_or(
            _as_float(data.get("repository_timeout")), defaults.repository_timeout
        ),
        max_retries=_or(_as_int(data.get("max_retries")), defaults.max_retries),
        backoff_base=_or(_as_float(data.get("backoff_base")), defaults.backoff_base),
        readme_char_budget=_or(
            _as_int(data.get("readme_char_budget")), defaults.readme_char_budget
        ),
        confidence=weights,
    )


def _github_settings(data: Dict[str, Any]) -> GitHubSettings:
    api_url = _as_str(data.get("api_url"))
    return GitHubSettings(api_url=api_url.rstrip("/")) if api_url else GitHubSettings()


def _llm_config(data: Dict[str, Any]) -> LLMConfig:
    defaults = LLMConfig()
    return LLMConfig(
        model=_as_str(data.get("model")),
        base_url=_as_str(data.get("base_url")),
        temperature=_or(_as_float(data.get("temperature")), defaults.temperature),
        max_tokens=_or(_as_int(data.get("max_tokens")), defaults.max_tokens),
        request_timeout=_or(_as_float(data.get("request_timeout")), defaults.request_timeout),
    )


def _cache_settings(value: Any) -> CacheSettings:
    # ``cache: false`` disables persistence entirely.
    if value is False:
        return CacheSettings(path=None, enabled=False)
    data = _as_dict(value)
    if not data:
        return CacheSettings()
    enabled = _as_bool(data.get("enabled"))
    return CacheSettings(
        path=_as_str(data.get("path")) or DEFAULT_CACHE_PATH,
        enabled=True if enabled is None else enabled,
    )


def _weight(data: Dict[str, Any], key: str, default: float) -> float:
    value = _as_float(data.get(key))
    if value is None:
        return default
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"discovery.confidence.{key} must be between 0 and 1")
    return value


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _or(value: Any, default: Any) -> Any:
    return default if value is None else value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) and str(value).strip() else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "CacheSettings",
    "ConfidenceWeights",
    "ConfigError",
    "DiscoverySettings",
    "GitHubSettings",
    "LLMConfig",
    "RuleScoutConfig",
    "load_config",
]
