"""Domain port for platform live status fetchers."""

from abc import ABC, abstractmethod

from ..models.creator import Platform
from ..models.live_status import FetchOutcome


class LiveStatusFetcherPort(ABC):
    """Port for fetching the live status of one channel on one platform."""

    platform: Platform

    @abstractmethod
    async def fetch(self, channel_identifier: str) -> FetchOutcome:
        """Fetch the current broadcast state of a channel.

        Args:
            channel_identifier: Channel as entered by the user

        Returns:
            ``FetchOutcome.ok`` with a live or offline status, or
            ``FetchOutcome.unavailable`` when the state could not be determined
        """
        pass

    @abstractmethod
    def channel_url(self, channel_identifier: str) -> str:
        """Build the public URL of a channel's live page.

        Args:
            channel_identifier: Channel as entered by the user

        Returns:
            URL used when a live status carries no stream URL
        """
        pass
