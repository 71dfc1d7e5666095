"""Factory for creating and managing live status fetchers."""

from typing import Dict, List, Optional

from ...domain.models.creator import Platform
from ...domain.ports.http_fetcher import HttpFetcherPort
from ...domain.ports.live_status_fetcher import LiveStatusFetcherPort
from ...domain.services.channel_resolver import ChannelResolver
from .twitch_fetcher import TWITCH_PUBLIC_CLIENT_ID, TwitchLiveStatusFetcher
from .youtube_fetcher import YouTubeLiveStatusFetcher


class LiveStatusFetcherFactory:
    """Factory for live status fetchers.

    Maintains one fetcher per platform. Twitch and YouTube fetchers are
    registered by default and share the HTTP adapter; additional platforms
    can be registered at runtime.
    """

    def __init__(
        self,
        http: HttpFetcherPort,
        user_agent: str,
        twitch_client_id: str = TWITCH_PUBLIC_CLIENT_ID,
        resolver: Optional[ChannelResolver] = None,
        resolver_cache_size: int = 1024,
    ):
        """Initialize the factory and register the default fetchers.

        Args:
            http: HTTP fetch port shared by all fetchers
            user_agent: User agent for every platform request
            twitch_client_id: Public Twitch client identifier
            resolver: YouTube channel resolver, created when omitted
            resolver_cache_size: Cache bound of a created resolver
        """
        self._resolver = resolver or ChannelResolver(http, user_agent, cache_size=resolver_cache_size)
        self._fetchers: Dict[Platform, LiveStatusFetcherPort] = {}

        self.register_fetcher(TwitchLiveStatusFetcher(http, user_agent, client_id=twitch_client_id))
        self.register_fetcher(YouTubeLiveStatusFetcher(http, self._resolver, user_agent))

    def register_fetcher(self, fetcher: LiveStatusFetcherPort, replace: bool = False) -> None:
        """Register the fetcher of a platform.

        Args:
            fetcher: Fetcher to register, keyed by its ``platform``
            replace: Whether an existing registration may be overwritten

        Raises:
            ValueError: If the platform already has a fetcher and ``replace`` is False
        """
        if fetcher.platform in self._fetchers and not replace:
            raise ValueError(f"Fetcher for {fetcher.platform.value} already registered")
        self._fetchers[fetcher.platform] = fetcher

    def get_fetcher(self, platform: Platform) -> Optional[LiveStatusFetcherPort]:
        """Get the fetcher of a platform, None if not registered."""
        return self._fetchers.get(platform)

    def fetchers(self) -> Dict[Platform, LiveStatusFetcherPort]:
        """Get a copy of the platform to fetcher mapping."""
        return dict(self._fetchers)

    @property
    def resolver(self) -> ChannelResolver:
        return self._resolver

    @property
    def available_platforms(self) -> List[str]:
        return sorted(platform.value for platform in self._fetchers)
