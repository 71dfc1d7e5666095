"""Resolve user-entered YouTube channel references to canonical channel IDs."""

import logging
import re
from typing import List, MutableMapping, Optional
from urllib.parse import urlsplit

from cachetools import LRUCache

from ..ports.http_fetcher import HttpFetcherPort

logger = logging.getLogger(__name__)

YOUTUBE_BASE_URL = "https://www.youtube.com"
CHANNEL_ID_PATTERN = re.compile(r"^(?:UC|HC)[0-9A-Za-z_-]{22}$")

_EMBEDDED_CHANNEL_ID = re.compile(r'"channelId":"(UC[0-9A-Za-z_-]{22})"')
_CHANNEL_PREFIX = re.compile(r"^channel/", re.IGNORECASE)
_PAGE_SUFFIXES = ("", "/about", "/streams", "/videos")
_MISSING = object()


def is_channel_id(value: str) -> bool:
    """Check whether a string is already a canonical channel ID."""
    return bool(CHANNEL_ID_PATTERN.match(value))


def is_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


class ChannelResolver:
    """Turns a URL, handle or bare ID into a canonical channel ID.

    Every page that is tried is cached, negative results included, so a
    reference that resolved once is answered from memory afterwards and a
    page that never carries an ID is not fetched again.
    """

    def __init__(
        self,
        http: HttpFetcherPort,
        user_agent: str,
        cache: Optional[MutableMapping[str, Optional[str]]] = None,
        cache_size: int = 1024,
    ):
        """Initialize the resolver.

        Args:
            http: HTTP fetch port
            user_agent: User agent sent with page requests
            cache: Resolution cache, keyed by the exact URL tried
            cache_size: Bound of the default LRU cache
        """
        self._http = http
        self._user_agent = user_agent
        self._cache = cache if cache is not None else LRUCache(maxsize=cache_size)

    async def resolve(self, raw_identifier: str) -> Optional[str]:
        """Resolve a channel reference.

        Args:
            raw_identifier: Channel URL, ``@handle``, bare handle or channel ID

        Returns:
            Canonical channel ID, or None when no candidate page yields one
        """
        trimmed = (raw_identifier or "").strip()
        if not trimmed:
            return None

        if is_channel_id(trimmed):
            return trimmed

        if is_url(trimmed):
            return await self._resolve_url(trimmed)

        if trimmed.startswith("@"):
            return await self._resolve_from_page(f"{YOUTUBE_BASE_URL}/{trimmed}")

        without_prefix = _CHANNEL_PREFIX.sub("", trimmed)
        if is_channel_id(without_prefix):
            return without_prefix

        for candidate in self._handle_candidates(without_prefix):
            channel_id = await self._resolve_from_page(candidate)
            if channel_id:
                return channel_id
        return None

    def clear_cache(self) -> None:
        """Forget every cached resolution, positive and negative."""
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    async def _resolve_url(self, url: str) -> Optional[str]:
        try:
            segments = [segment for segment in urlsplit(url).path.split("/") if segment]
        except ValueError as e:
            logger.warning(f"⚠️ Could not parse channel URL {url}: {e}")
            return None

        if len(segments) >= 2 and segments[0] == "channel" and is_channel_id(segments[1]):
            return segments[1]

        handle = next((segment for segment in segments if segment.startswith("@")), None)
        if handle:
            return await self._resolve_from_page(f"{YOUTUBE_BASE_URL}/{handle}")

        if segments and segments[0] != "watch":
            return await self._resolve_from_page(f"{YOUTUBE_BASE_URL}/{'/'.join(segments)}")

        return None

    @staticmethod
    def _handle_candidates(handle: str) -> List[str]:
        candidates = [f"{YOUTUBE_BASE_URL}/@{handle}", f"{YOUTUBE_BASE_URL}/{handle}"]
        return list(dict.fromkeys(candidates))

    async def _resolve_from_page(self, url: str) -> Optional[str]:
        """Look for an embedded channel ID on a page and its sub-pages."""
        base = url.rstrip("/")

        for candidate in (f"{base}{suffix}" for suffix in _PAGE_SUFFIXES):
            cached = self._cache.get(candidate, _MISSING)
            if cached is not _MISSING:
                if cached:
                    self._cache[url] = cached
                    return cached
                continue

            channel_id = await self._fetch_channel_id(candidate)
            self._cache[candidate] = channel_id
            if channel_id:
                self._cache[url] = channel_id
                logger.debug(f"✅ Resolved {url} to channel {channel_id} via {candidate}")
                return channel_id

        self._cache[url] = None
        return None

    async def _fetch_channel_id(self, url: str) -> Optional[str]:
        try:
            response = await self._http.fetch(url, headers={"User-Agent": self._user_agent})
        except Exception as e:
            logger.warning(f"⚠️ Failed to resolve YouTube channel ID from {url}: {e}")
            return None

        if not response.ok:
            return None

        match = _EMBEDDED_CHANNEL_ID.search(response.text)
        return match.group(1) if match else None
