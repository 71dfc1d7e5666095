"""Domain model for tracked creators."""

from datetime import datetime
from enum import Enum
from typing import List
from uuid import uuid4

from pydantic import BaseModel, Field


class Platform(str, Enum):
    """Streaming platforms a creator can be tracked on."""

    TWITCH = "twitch"
    YOUTUBE = "youtube"

    @property
    def label(self) -> str:
        """Human readable platform name used in notifications."""
        return _PLATFORM_LABELS[self]


_PLATFORM_LABELS = {
    Platform.TWITCH: "Twitch",
    Platform.YOUTUBE: "YouTube",
}


class TrackedCreator(BaseModel):
    """A creator whose live status is polled."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Stable creator identifier")
    platform: Platform = Field(..., description="Platform the creator streams on")
    channel_identifier: str = Field(
        ..., description="Channel as entered by the user (URL, handle or ID), not guaranteed canonical"
    )
    display_name: str = Field(..., description="Human label shown in notifications")
    notify_enabled: bool = Field(default=True, description="Whether a live transition fires a notification")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="When the creator was registered")
    tags: List[str] = Field(default_factory=list, description="Free-form user tags")

    class Config:
        """Pydantic model configuration."""
        frozen = True
        json_schema_extra = {
            "example": {
                "platform": "twitch",
                "channel_identifier": "https://www.twitch.tv/alice",
                "display_name": "Alice",
                "notify_enabled": True,
                "tags": ["fps"],
            }
        }
