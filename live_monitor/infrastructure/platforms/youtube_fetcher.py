"""YouTube live status fetcher based on page scraping."""

import logging
from typing import Dict, List
from urllib.parse import urlsplit

from ...domain.models.creator import Platform
from ...domain.models.live_status import FetchOutcome, LiveStatus
from ...domain.ports.http_fetcher import HttpFetcherPort
from ...domain.ports.live_status_fetcher import LiveStatusFetcherPort
from ...domain.services.channel_resolver import ChannelResolver, YOUTUBE_BASE_URL, is_channel_id, is_url
from .youtube_page_parser import parse_live_status

logger = logging.getLogger(__name__)


def build_live_page_candidates(channel_id: str, raw_identifier: str) -> List[str]:
    """List the pages that may reveal a channel's live broadcast.

    Args:
        channel_id: Canonical channel ID
        raw_identifier: Channel reference as entered by the user

    Returns:
        De-duplicated URLs, live-oriented channel pages first
    """
    raw = raw_identifier.strip()
    urls: Dict[str, None] = {}

    def add(url: str) -> None:
        urls.setdefault(url, None)

    add(f"{YOUTUBE_BASE_URL}/channel/{channel_id}/live")
    add(f"{YOUTUBE_BASE_URL}/channel/{channel_id}")

    handles: List[str] = []
    if is_url(raw):
        try:
            path = urlsplit(raw).path.rstrip("/")
        except ValueError:
            path = ""
        if path.endswith("/live"):
            path = path[: -len("/live")]
        if path:
            add(f"{YOUTUBE_BASE_URL}{path}")
            add(f"{YOUTUBE_BASE_URL}{path}/live")
            handles.extend(segment for segment in path.split("/") if segment.startswith("@"))
    elif not is_channel_id(raw.removeprefix("channel/")):
        bare = raw.lstrip("@").rstrip("/")
        if bare:
            handles.extend([f"@{bare}", bare])

    for handle in handles:
        bare = handle.lstrip("@")
        add(f"{YOUTUBE_BASE_URL}/{handle}")
        add(f"{YOUTUBE_BASE_URL}/{handle}/live")
        add(f"{YOUTUBE_BASE_URL}/c/{bare}")
        add(f"{YOUTUBE_BASE_URL}/c/{bare}/live")
        add(f"{YOUTUBE_BASE_URL}/user/{bare}")
        add(f"{YOUTUBE_BASE_URL}/user/{bare}/live")

    add(f"{YOUTUBE_BASE_URL}/embed/live_stream?channel={channel_id}")
    return list(urls)


class YouTubeLiveStatusFetcher(LiveStatusFetcherPort):
    """Best-effort YouTube live status from channel and watch pages."""

    platform = Platform.YOUTUBE

    def __init__(self, http: HttpFetcherPort, resolver: ChannelResolver, user_agent: str):
        """Initialize the fetcher.

        Args:
            http: HTTP fetch port
            resolver: Channel ID resolver
            user_agent: User agent sent with page requests
        """
        self._http = http
        self._resolver = resolver
        self._user_agent = user_agent

    async def fetch(self, channel_identifier: str) -> FetchOutcome:
        try:
            channel_id = await self._resolver.resolve(channel_identifier)
        except Exception as e:
            logger.warning(f"⚠️ YouTube channel resolution failed for {channel_identifier!r}: {e}")
            return FetchOutcome.unavailable(str(e))

        if not channel_id:
            logger.warning(f"⚠️ Could not resolve YouTube channel ID for {channel_identifier!r}")
            return FetchOutcome.unavailable("Channel ID not resolved")

        logger.debug(f"🔍 Resolved {channel_identifier!r} to YouTube channel {channel_id}")

        for url in build_live_page_candidates(channel_id, channel_identifier):
            try:
                response = await self._http.fetch(
                    url,
                    headers={"User-Agent": self._user_agent, "Accept": "text/html"},
                )
                if response.status_code != 200:
                    continue

                status = parse_live_status(response.text, url)
                if status and status.is_live:
                    logger.debug(f"✅ Live broadcast for {channel_id} found on {url}: {status.stream_url}")
                    return FetchOutcome.ok(status)

                logger.debug(f"🔍 No live signal for {channel_id} on {url}")
            except Exception as e:
                logger.warning(f"⚠️ Failed to check YouTube live page {url} for {channel_id}: {e}")

        return FetchOutcome.ok(LiveStatus.offline())

    def channel_url(self, channel_identifier: str) -> str:
        identifier = channel_identifier.strip()
        if is_url(identifier):
            return identifier
        if identifier.startswith("@"):
            return f"{YOUTUBE_BASE_URL}/{identifier}/live"
        if is_channel_id(identifier):
            return f"{YOUTUBE_BASE_URL}/channel/{identifier}/live"
        return f"{YOUTUBE_BASE_URL}/@{identifier}/live"
