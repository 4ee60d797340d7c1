"""Error taxonomy for the discovery pipeline."""

from __future__ import annotations

from typing import Optional


class DiscoveryError(RuntimeError):
    """Base class for failures raised inside the discovery pipeline."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.url = url
        self.status = status


class NotFoundError(DiscoveryError):
    """The package or resource does not exist. Never retried."""


class NetworkError(DiscoveryError):
    """Transport failure or timeout. Retried by the HTTP client before surfacing."""


class ParseError(DiscoveryError):
    """A response body could not be decoded into the expected shape."""


class CredentialMissingError(DiscoveryError):
    """A required API credential is not configured."""


class ModelInferenceError(DiscoveryError):
    """The language model rejected the request or returned malformed output."""


__all__ = [
    "CredentialMissingError",
    "DiscoveryError",
    "ModelInferenceError",
    "NetworkError",
    "NotFoundError",
    "ParseError",
]
