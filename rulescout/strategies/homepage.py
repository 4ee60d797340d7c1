"""Homepage manifest tier: fetches ``llms.txt`` from the package's apex domain."""

from __future__ import annotations

import ipaddress
from typing import List, Optional
from urllib.parse import urlparse

from .base import DiscoveryStrategy, SkipTier
from ..models import DiscoveredRule, PackageMetadata, RuleCategory, RuleSource
from ..network import HttpClient

MANIFEST_PATH = "llms.txt"


def apex_domain(url: Optional[str]) -> Optional[str]:
    """Reduce a homepage URL to its registrable root.

    Keeps the last two hostname labels, so ``https://docs.example.com/x`` and
    ``https://a.b.example.com`` both map to ``example.com``. IP addresses and
    single-label hosts are returned unchanged.
    """
    if not url or not url.strip():
        return None
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        host = urlparse(candidate).hostname
    except ValueError:
        return None
    if not host:
        return None
    host = host.rstrip(".").lower()
    try:
        ipaddress.ip_address(host)
    except ValueError:
        pass
    else:
        return host
    labels = [label for label in host.split(".") if label]
    if len(labels) < 2:
        return host or None
    return ".".join(labels[-2:])


class HomepageManifestStrategy(DiscoveryStrategy):
    """Treats a well-known ``llms.txt`` on the project homepage as authoritative."""

    tier = "homepage"

    def __init__(
        self,
        http: HttpClient | None = None,
        *,
        confidence: float = 0.9,
        timeout: float = 5.0,
    ) -> None:
        super().__init__(confidence=confidence)
        self.http = http or HttpClient()
        self.timeout = timeout

    def discover(self, metadata: PackageMetadata) -> List[DiscoveredRule]:
        if not metadata.homepage:
            raise SkipTier(f"{metadata.name} has no homepage")
        domain = apex_domain(metadata.homepage)
        if domain is None:
            raise SkipTier(f"Could not extract a domain from {metadata.homepage}")

        url = f"https://{domain}/{MANIFEST_PATH}"
        self.logger.debug("Fetching %s for %s", url, metadata.name)
        body = self.http.fetch_text(url, timeout=self.timeout)
        if not body.strip():
            return []

        return [
            self.make_rule(
                metadata,
                name=f"{metadata.name} LLM Documentation",
                description=f"LLM-oriented documentation for {metadata.name} published at {url}.",
                markdown=body,
                source=RuleSource.DIRECT,
                category=RuleCategory.DOCUMENTATION,
                tags=["documentation", MANIFEST_PATH, metadata.name],
            )
        ]


__all__ = ["HomepageManifestStrategy", "apex_domain"]
