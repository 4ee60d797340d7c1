"""Retrying HTTP client shared by registry fetchers and discovery strategies."""

from __future__ import annotations

import http.client
import json
import socket
import time
from typing import Any, Callable, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from . import __version__
from .errors import NetworkError, NotFoundError, ParseError
from .logging import get_logger

USER_AGENT = f"rulescout/{__version__}"

_RETRYABLE_STATUS = {408, 425, 429, 500, 502, 503, 504}


class HttpClient:
    """Fetches JSON or text over HTTP with bounded retries and exponential backoff."""

    def __init__(
        self,
        *,
        max_retries: int = 2,
        backoff_base: float = 0.5,
        default_timeout: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_retries = max(0, max_retries)
        self.backoff_base = backoff_base
        self.default_timeout = default_timeout
        self._sleep = sleep
        self.logger = get_logger("network")

    def fetch_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: Optional[float] = None,
    ) -> Any:
        raw = self._request(url, accept="application/json", headers=headers, timeout=timeout)
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ParseError(f"Invalid JSON returned by {url}", url=url) from exc

    def fetch_text(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: Optional[float] = None,
    ) -> str:
        raw = self._request(url, accept="text/plain", headers=headers, timeout=timeout)
        return raw.decode("utf-8", errors="replace")

    def _request(
        self,
        url: str,
        *,
        accept: str,
        headers: Mapping[str, str] | None,
        timeout: Optional[float],
    ) -> bytes:
        request_headers = {"User-Agent": USER_AGENT, "Accept": accept}
        if headers:
            request_headers.update(headers)
        effective_timeout = timeout if timeout is not None else self.default_timeout

        attempt = 0
        while True:
            try:
                return self._send(url, request_headers, effective_timeout)
            except NetworkError as exc:
                retryable = exc.status is None or exc.status in _RETRYABLE_STATUS
                if not retryable or attempt >= self.max_retries:
                    raise
                delay = self.backoff_base * (2**attempt)
                attempt += 1
                self.logger.debug(
                    "Retrying %s in %.2fs (attempt %d/%d): %s",
                    url,
                    delay,
                    attempt,
                    self.max_retries,
                    exc.message,
                )
                self._sleep(delay)

    @staticmethod
    def _send(url: str, headers: Mapping[str, str], timeout: float) -> bytes:
        http_request = Request(url, headers=dict(headers), method="GET")
        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                return response.read()
        except HTTPError as exc:
            if exc.code == 404:
                raise NotFoundError(f"Resource not found: {url}", url=url, status=404) from exc
            raise NetworkError(
                f"HTTP {exc.code} from {url}: {exc.reason}", url=url, status=exc.code
            ) from exc
        except URLError as exc:
            raise NetworkError(f"Request to {url} failed: {exc.reason}", url=url) from exc
        except (socket.timeout, TimeoutError) as exc:
            raise NetworkError(f"Request to {url} timed out after {timeout}s", url=url) from exc
        except (http.client.HTTPException, ConnectionError) as exc:
            raise NetworkError(f"Connection to {url} dropped: {exc}", url=url) from exc


__all__ = ["HttpClient", "USER_AGENT"]
