"""Test configuration and common fixtures."""

from typing import Callable, Dict, List, Optional, Union

import pytest

from live_monitor.domain.models.creator import Platform, TrackedCreator
from live_monitor.domain.ports.http_fetcher import HttpResponse


class FakeHttpFetcher:
    """HTTP fetch port serving canned responses and recording every call.

    Unknown URLs answer with HTTP 404.
    """

    def __init__(self):
        self.responses: Dict[str, Union[HttpResponse, Exception]] = {}
        self.calls: List[dict] = []

    def add(self, url: str, text: str = "", status_code: int = 200) -> None:
        self.responses[url] = HttpResponse(status_code=status_code, text=text, url=url)

    def fail(self, url: str, error: Exception) -> None:
        self.responses[url] = error

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        self.calls.append({"url": url, "method": method, "headers": headers or {}, "body": body})
        response = self.responses.get(url)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return HttpResponse(status_code=404, text="", url=url)
        return response

    async def shutdown(self) -> None:
        pass

    @property
    def urls(self) -> List[str]:
        return [call["url"] for call in self.calls]


@pytest.fixture
def fake_http() -> FakeHttpFetcher:
    """Provide a fake HTTP fetcher."""
    return FakeHttpFetcher()


@pytest.fixture
def make_creator() -> Callable[..., TrackedCreator]:
    """Provide a factory for tracked creators."""

    def factory(
        display_name: str = "Alice",
        channel_identifier: str = "alice",
        platform: Platform = Platform.TWITCH,
        **kwargs,
    ) -> TrackedCreator:
        return TrackedCreator(
            platform=platform,
            channel_identifier=channel_identifier,
            display_name=display_name,
            **kwargs,
        )

    return factory
