"""Notification port for went-live alerts."""

from typing import Protocol


class NotifierPort(Protocol):
    """Protocol for delivering a went-live notification."""

    async def notify_went_live(self, display_name: str, platform_label: str, url: str) -> None:
        """Announce that a creator started broadcasting.

        Args:
            display_name: Creator label
            platform_label: Human platform name ("Twitch", "YouTube")
            url: Where the broadcast can be opened
        """
        ...
