"""Twitch live status fetcher using the public GraphQL endpoint."""

import json
import logging
import re
from typing import Optional

from ...domain.models.creator import Platform
from ...domain.models.live_status import FetchOutcome, LiveStatus
from ...domain.ports.http_fetcher import HttpFetcherPort
from ...domain.ports.live_status_fetcher import LiveStatusFetcherPort
from .value_parsing import extract_text, normalize_timestamp, parse_viewer_count

logger = logging.getLogger(__name__)

TWITCH_GQL_ENDPOINT = "https://gql.twitch.tv/gql"
TWITCH_PUBLIC_CLIENT_ID = "kimne78kx3ncx6brgo4mv6wki5h1ko"
TWITCH_BASE_URL = "https://www.twitch.tv"

LIVE_STATUS_QUERY = (
    "query ($login: String!) { user(login: $login) "
    "{ stream { type title viewersCount createdAt game { name } } } }"
)

_URL_PREFIXES = (
    "https://www.twitch.tv/",
    "http://www.twitch.tv/",
    "https://twitch.tv/",
    "http://twitch.tv/",
)
_PATH_TERMINATORS = re.compile(r"[/?#]")


def normalize_login(channel_identifier: str) -> Optional[str]:
    """Extract the login name from a channel URL or return the trimmed input."""
    trimmed = (channel_identifier or "").strip()
    if not trimmed:
        return None

    lower = trimmed.lower()
    for prefix in _URL_PREFIXES:
        if lower.startswith(prefix):
            login = _PATH_TERMINATORS.split(trimmed[len(prefix):], maxsplit=1)[0]
            return login or None

    return trimmed


class TwitchLiveStatusFetcher(LiveStatusFetcherPort):
    """Authoritative Twitch live status from a single GraphQL query."""

    platform = Platform.TWITCH

    def __init__(
        self,
        http: HttpFetcherPort,
        user_agent: str,
        client_id: str = TWITCH_PUBLIC_CLIENT_ID,
    ):
        """Initialize the fetcher.

        Args:
            http: HTTP fetch port
            user_agent: Descriptive user agent
            client_id: Public client identifier sent as ``Client-ID``
        """
        self._http = http
        self._user_agent = user_agent
        self._client_id = client_id

    async def fetch(self, channel_identifier: str) -> FetchOutcome:
        login = normalize_login(channel_identifier)
        if not login:
            return FetchOutcome.unavailable(f"Invalid Twitch channel: {channel_identifier!r}")

        try:
            response = await self._http.fetch(
                TWITCH_GQL_ENDPOINT,
                method="POST",
                headers={
                    "Client-ID": self._client_id,
                    "Content-Type": "text/plain;charset=UTF-8",
                    "User-Agent": self._user_agent,
                    "Accept": "application/json",
                },
                body=json.dumps({"query": LIVE_STATUS_QUERY, "variables": {"login": login}}),
            )
        except Exception as e:
            logger.warning(f"⚠️ Twitch live status fetch failed for {login}: {e}")
            return FetchOutcome.unavailable(str(e))

        if response.status_code != 200:
            logger.warning(f"⚠️ Twitch live status fetch for {login} returned HTTP {response.status_code}")
            return FetchOutcome.unavailable(f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"⚠️ Twitch returned malformed JSON for {login}: {e}")
            return FetchOutcome.unavailable("Malformed response")

        if not isinstance(payload, dict):
            return FetchOutcome.unavailable("Unexpected response shape")

        if payload.get("errors"):
            logger.warning(f"⚠️ Twitch GraphQL errors for {login}: {payload['errors']}")
            return FetchOutcome.unavailable("GraphQL errors")

        data = payload.get("data")
        if data is not None and not isinstance(data, dict):
            return FetchOutcome.unavailable("Unexpected response shape")

        user = (data or {}).get("user") or {}
        stream = user.get("stream") if isinstance(user, dict) else None
        if not isinstance(stream, dict):
            return FetchOutcome.ok(LiveStatus.offline())

        return FetchOutcome.ok(
            LiveStatus(
                is_live=True,
                title=extract_text(stream.get("title")),
                viewer_count=parse_viewer_count(stream.get("viewersCount")),
                started_at=normalize_timestamp(stream.get("createdAt")),
                stream_url=f"{TWITCH_BASE_URL}/{login}",
            )
        )

    def channel_url(self, channel_identifier: str) -> str:
        login = normalize_login(channel_identifier) or channel_identifier.strip()
        return f"{TWITCH_BASE_URL}/{login}"
