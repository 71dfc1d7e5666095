"""Persistence port for tracked creators and their live status."""

from typing import List, Protocol

from ..models.creator import TrackedCreator
from ..models.live_status import LiveStatus


class CreatorRepositoryPort(Protocol):
    """Protocol for the store the poller reads creators from and writes status to."""

    async def list_tracked_creators(self) -> List[TrackedCreator]:
        """Return every creator that should be polled."""
        ...

    async def upsert_live_status(self, creator_id: str, status: LiveStatus) -> None:
        """Store the latest status of a creator.

        Idempotent, last write wins.
        """
        ...
