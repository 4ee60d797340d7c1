"""Credential providers consumed by discovery strategies."""

from __future__ import annotations

import os
from typing import Dict, Mapping, Optional, Protocol, Sequence


class CredentialProvider(Protocol):
    """Read-only source of API tokens keyed by provider name."""

    def get_secret(self, provider: str) -> Optional[str]:
        """Return the secret for ``provider`` or None when it is not configured."""


class EnvCredentialProvider:
    """Looks up secrets in environment variables."""

    ENV_KEYS: Dict[str, Sequence[str]] = {
        "github": ("RULESCOUT_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN"),
        "openai": ("RULESCOUT_OPENAI_API_KEY", "OPENAI_API_KEY"),
        "anthropic": ("RULESCOUT_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
    }

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def get_secret(self, provider: str) -> Optional[str]:
        keys = self.ENV_KEYS.get(provider.lower(), (f"RULESCOUT_{provider.upper()}_TOKEN",))
        for key in keys:
            value = self._environ.get(key)
            if value and value.strip():
                return value.strip()
        return None


class StaticCredentialProvider:
    """Serves secrets from an in-memory mapping."""

    def __init__(self, secrets: Mapping[str, str] | None = None) -> None:
        self._secrets = {key.lower(): value for key, value in (secrets or {}).items()}

    def get_secret(self, provider: str) -> Optional[str]:
        value = self._secrets.get(provider.lower())
        return value or None


__all__ = ["CredentialProvider", "EnvCredentialProvider", "StaticCredentialProvider"]
