"""Snapshot fetchers.

A fetcher is any zero-argument callable returning a metric map. These
implementations obtain exposition text from a callable, an HTTP metrics
endpoint, or a command's stdout, and parse it.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence

import httpx

from slo.exposition import parse_exposition

logger = logging.getLogger(__name__)


class TextSourceFetcher:
    """Parses exposition text returned by ``source``."""

    def __init__(self, source: Callable[[], str]) -> None:
        self.source = source

    def __call__(self) -> dict[str, float]:
        return parse_exposition(self.source())


class HttpMetricsFetcher:
    """Scrapes a ``/metrics`` endpoint over HTTP.

    Attributes:
        url: Metrics endpoint URL
        token: Optional bearer token sent in the Authorization header
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 2.0,
        verify: bool = True,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize HTTP fetcher.

        Args:
            url: Metrics endpoint URL
            token: Optional bearer token
            timeout: Request timeout in seconds
            verify: Verify TLS certificates (disable for self-signed test clusters)
            client: Preconfigured client (created per call if None)
        """
        if not url:
            raise ValueError("url must not be empty")
        self.url = url
        self.token = token
        self.timeout = timeout
        self.verify = verify
        self._client = client

    def __call__(self) -> dict[str, float]:
        headers = {"Accept": "text/plain"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        if self._client is not None:
            response = self._client.get(self.url, headers=headers, timeout=self.timeout)
        else:
            with httpx.Client(timeout=self.timeout, verify=self.verify) as client:
                response = client.get(self.url, headers=headers)
        response.raise_for_status()

        snapshot = parse_exposition(response.text)
        logger.debug(
            "slo.fetch.http_ok",
            extra={"url": self.url, "series_count": len(snapshot)},
        )
        return snapshot


class CommandMetricsFetcher:
    """Runs a command and parses its stdout (e.g. ``curl -ksS <url>``).

    A non-zero exit raises ``subprocess.CalledProcessError``.
    """

    def __init__(self, argv: Sequence[str], timeout: float | None = None) -> None:
        if not argv:
            raise ValueError("argv must not be empty")
        self.argv = list(argv)
        self.timeout = timeout

    def __call__(self) -> dict[str, float]:
        completed = subprocess.run(
            self.argv,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=True,
        )
        return parse_exposition(completed.stdout)
