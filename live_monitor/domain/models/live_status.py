"""Domain models for live status observations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

_LIVE_ONLY_FIELDS = ("title", "viewer_count", "started_at", "stream_url")
_BOOL = TypeAdapter(bool)


class LiveStatus(BaseModel):
    """Normalized outcome of one live status fetch.

    Metadata only exists for a live broadcast: an offline status never
    carries a title, viewer count, start time or stream URL.
    """

    is_live: bool = Field(..., description="Whether the creator is broadcasting")
    title: Optional[str] = Field(None, description="Broadcast title")
    viewer_count: Optional[int] = Field(None, ge=0, description="Current viewer count")
    started_at: Optional[str] = Field(None, description="Broadcast start, ISO-8601 UTC")
    stream_url: Optional[str] = Field(None, description="Canonical URL of the live content")

    class Config:
        """Pydantic model configuration."""
        frozen = True
        json_schema_extra = {
            "example": {
                "is_live": True,
                "title": "Ranked Grind",
                "viewer_count": 1500,
                "started_at": "2024-01-01T00:00:00.000Z",
                "stream_url": "https://www.twitch.tv/alice",
            }
        }

    @model_validator(mode="before")
    @classmethod
    def _drop_offline_metadata(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        # Coerced flag: "false" and 0 are offline too
        try:
            is_live = _BOOL.validate_python(data.get("is_live"))
        except ValidationError:
            return data
        if not is_live:
            return {**data, **{name: None for name in _LIVE_ONLY_FIELDS}}
        return data

    @classmethod
    def offline(cls) -> "LiveStatus":
        """Status of a creator confirmed not to be live."""
        return cls(is_live=False)


class LiveStatusRecord(BaseModel):
    """Persisted live status of one creator (latest write wins)."""

    creator_id: str
    is_live: bool
    title: Optional[str] = None
    viewer_count: Optional[int] = None
    started_at: Optional[str] = None
    stream_url: Optional[str] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def from_status(cls, creator_id: str, status: LiveStatus) -> "LiveStatusRecord":
        return cls(creator_id=creator_id, **status.model_dump())

    def to_status(self) -> LiveStatus:
        return LiveStatus(
            is_live=self.is_live,
            title=self.title,
            viewer_count=self.viewer_count,
            started_at=self.started_at,
            stream_url=self.stream_url,
        )


@dataclass(frozen=True)
class FetchOutcome:
    """Result of a platform fetch.

    ``status`` is set when the platform answered (live or confirmed
    offline). An unavailable outcome means the fetch pipeline failed and the
    tick should leave the creator untouched.
    """

    status: Optional[LiveStatus] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, status: LiveStatus) -> "FetchOutcome":
        return cls(status=status)

    @classmethod
    def unavailable(cls, reason: str) -> "FetchOutcome":
        return cls(reason=reason)

    @property
    def is_available(self) -> bool:
        return self.status is not None


@dataclass(frozen=True)
class TransitionEvent:
    """A creator went from not live to live."""

    creator_id: str
    display_name: str
    platform_label: str
    url: str
    detected_at: datetime = field(default_factory=datetime.utcnow)
