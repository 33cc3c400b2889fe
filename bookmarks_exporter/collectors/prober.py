"""HTTP liveness prober."""

import asyncio
import logging
from typing import Optional

import httpx

from ..config.models import ProbeConfig
from .base import BaseProber, safe_probe


class HTTPProber(BaseProber):
    """Issues one bounded GET per URL and reports the response status."""

    def __init__(
        self,
        config: ProbeConfig,
        logger: logging.Logger,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize HTTP prober.

        Args:
            config: Probe configuration (timeout, user agent, redirects)
            logger: Logger instance
            transport: Optional httpx transport, used by tests to fake responses
        """
        super().__init__(logger)
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Shared client, created on first use."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.timeout_seconds,
                follow_redirects=self.config.follow_redirects,
                transport=self._transport
            )
        return self._client

    @safe_probe
    async def probe(self, url: str) -> int:
        """
        Probe a single URL.

        The whole attempt, redirects included, is bounded by timeout_seconds.

        Args:
            url: Target URL

        Returns:
            int: HTTP status code, 0 on any failure
        """
        status = await asyncio.wait_for(
            self._fetch_status(url),
            timeout=self.config.timeout_seconds
        )
        self.logger.debug(f"Probed {url}: {status}", extra={"url": url, "status": status})
        return status

    async def _fetch_status(self, url: str) -> int:
        """
        Send the GET and read only the status line.

        Args:
            url: Target URL

        Returns:
            int: Response status code
        """
        # Streaming leaves the body unread; the context manager closes the
        # response on every exit path, cancellation included.
        async with self.client.stream("GET", url) as response:
            return response.status_code

    async def aclose(self) -> None:
        """Close the shared HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
