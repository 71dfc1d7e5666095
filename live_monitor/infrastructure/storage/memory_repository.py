"""In-memory implementation of the creator repository port."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, TypeAdapter

from ...domain.models.creator import Platform, TrackedCreator
from ...domain.models.live_status import LiveStatus, LiveStatusRecord

logger = logging.getLogger(__name__)


class CreatorNotFoundError(KeyError):
    """Raised when a creator ID is unknown."""


class CreatorWithStatus(BaseModel):
    """A creator joined with its latest live status, if any."""
    creator: TrackedCreator
    live_status: Optional[LiveStatusRecord] = None


class InMemoryCreatorRepository:
    """Creator store kept in process memory.

    Creators keep their insertion order. Live statuses are keyed by creator
    ID and replaced on every upsert.
    """

    def __init__(self, creators: Optional[List[TrackedCreator]] = None):
        self._creators: Dict[str, TrackedCreator] = {}
        self._statuses: Dict[str, LiveStatusRecord] = {}
        self._lock = asyncio.Lock()
        for creator in creators or []:
            self._creators[creator.id] = creator

    @classmethod
    def from_file(cls, path: str) -> "InMemoryCreatorRepository":
        """Seed a repository from a JSON list of creators.

        Raises:
            FileNotFoundError: If the file does not exist
            pydantic.ValidationError: If an entry is not a valid creator
        """
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        creators = TypeAdapter(List[TrackedCreator]).validate_python(raw)
        logger.info(f"📁 Loaded {len(creators)} creators from {path}")
        return cls(creators)

    # ------------------------------------------------------------
    # Port used by the live sync service
    # ------------------------------------------------------------

    async def list_tracked_creators(self) -> List[TrackedCreator]:
        return list(self._creators.values())

    async def upsert_live_status(self, creator_id: str, status: LiveStatus) -> None:
        async with self._lock:
            if creator_id not in self._creators:
                # The creator was deleted while its fetch was in flight.
                logger.debug(f"Ignoring live status for unknown creator {creator_id}")
                return
            self._statuses[creator_id] = LiveStatusRecord.from_status(creator_id, status)

    # ------------------------------------------------------------
    # Management
    # ------------------------------------------------------------

    async def add_creator(
        self,
        platform: Platform,
        channel_identifier: str,
        display_name: str,
        notify_enabled: bool = True,
        tags: Optional[List[str]] = None,
    ) -> TrackedCreator:
        creator = TrackedCreator(
            platform=platform,
            channel_identifier=channel_identifier.strip(),
            display_name=display_name,
            notify_enabled=notify_enabled,
            tags=tags or [],
        )
        async with self._lock:
            self._creators[creator.id] = creator
        logger.info(f"➕ Added {platform.label} creator {creator.id} ({display_name})")
        return creator

    async def update_creator(self, creator_id: str, **changes: Any) -> TrackedCreator:
        """Apply changes to a creator.

        A changed channel invalidates the stored live status.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        updates = {key: value for key, value in changes.items() if value is not None}
        async with self._lock:
            current = self._get_or_raise(creator_id)
            updated = current.model_copy(update=updates)
            self._creators[creator_id] = updated
            if updated.channel_identifier != current.channel_identifier:
                self._statuses.pop(creator_id, None)
        return updated

    async def delete_creator(self, creator_id: str) -> None:
        """Remove a creator and its live status.

        Raises:
            CreatorNotFoundError: If the creator does not exist
        """
        async with self._lock:
            self._get_or_raise(creator_id)
            del self._creators[creator_id]
            self._statuses.pop(creator_id, None)
        logger.info(f"➖ Removed creator {creator_id}")

    async def get_creator(self, creator_id: str) -> Optional[TrackedCreator]:
        return self._creators.get(creator_id)

    async def get_live_status(self, creator_id: str) -> Optional[LiveStatusRecord]:
        return self._statuses.get(creator_id)

    async def list_live_statuses(self) -> List[LiveStatusRecord]:
        return list(self._statuses.values())

    async def list_creators_with_status(self) -> List[CreatorWithStatus]:
        return [
            CreatorWithStatus(creator=creator, live_status=self._statuses.get(creator_id))
            for creator_id, creator in self._creators.items()
        ]

    def _get_or_raise(self, creator_id: str) -> TrackedCreator:
        creator = self._creators.get(creator_id)
        if creator is None:
            raise CreatorNotFoundError(creator_id)
        return creator

    @property
    def counts(self) -> Tuple[int, int]:
        """Number of creators and number of creators currently live."""
        live = sum(1 for record in self._statuses.values() if record.is_live)
        return len(self._creators), live
