"""HTTP fetch capability used by the poll loop."""

from typing import Any, Protocol

import httpx
import structlog

log = structlog.stdlib.get_logger()


class Fetcher(Protocol):
    """Anything that can fetch the bytes behind a URL or raise trying."""

    async def fetch(self, url: str) -> bytes: ...


class HttpClientService:
    """Single-attempt HTTP GET client.

    Transport failures, timeouts and non-success status codes all raise; there
    is no retry or backoff. A failed cycle waits for the next tick instead.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client service.

        Args:
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            transport: Optional httpx transport (tests pass an httpx.MockTransport)
        """
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": "api-poller/0.1.0"
            },
            follow_redirects=True,
            verify=verify_ssl,
            transport=transport,
        )

        log.info("HTTP client service initialized", timeout=timeout, verify_ssl=verify_ssl)

    async def fetch(self, url: str) -> bytes:
        """GET `url` and return the response body.

        Args:
            url: The URL to request

        Returns:
            Raw response body

        Raises:
            httpx.HTTPStatusError: If the server answers with a non-success status
            httpx.RequestError: If the request cannot be completed (connection, timeout)
        """
        log.debug("Making HTTP GET request", url=url)

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.warning(
                "HTTP GET request failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        log.info(
            "HTTP GET request successful",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content)
        )
        return response.content

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClientService":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
