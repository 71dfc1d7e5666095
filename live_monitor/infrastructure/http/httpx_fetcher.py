"""httpx adapter implementing the HTTP fetch port."""

import logging
from typing import Dict, Optional

import httpx

from ...domain.ports.http_fetcher import HttpFetchError, HttpResponse

logger = logging.getLogger(__name__)


class HttpxFetcher:
    """HTTP fetch port backed by a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        timeout: float = 10.0,
        max_redirects: int = 5,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            timeout: Per-request timeout in seconds
            max_redirects: Maximum redirects followed per request
            client: Preconfigured client, used as is
            transport: Transport of the client created on first use
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self._client = client
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=self.max_redirects,
                transport=self._transport,
            )
        return self._client

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        try:
            response = await self._get_client().request(
                method,
                url,
                headers=headers,
                content=body.encode("utf-8") if body is not None else None,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"❌ {method} {url} failed: {e}")
            raise HttpFetchError(f"{method} {url} failed: {e}") from e

        return HttpResponse(
            status_code=response.status_code,
            text=response.text,
            url=str(response.url),
            headers=dict(response.headers),
        )

    async def shutdown(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
