"""Domain port for HTTP page and API fetches."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


class HttpFetchError(Exception):
    """Raised when a request could not be completed (DNS, timeout, TLS, ...)."""


@dataclass
class HttpResponse:
    """Status code and decoded body of a completed request."""
    status_code: int
    text: str
    url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.text)


class HttpFetcherPort(Protocol):
    """Port for performing HTTP requests with bounded redirect following."""

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        """Perform a request.

        Args:
            url: Absolute URL
            method: HTTP method
            headers: Request headers
            body: Raw request body

        Returns:
            Response with any status code

        Raises:
            HttpFetchError: If the transport failed
        """
        ...

    async def shutdown(self) -> None:
        """Release pooled connections."""
        ...
