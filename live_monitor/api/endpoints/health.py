"""Health check endpoints."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...domain.services.live_sync_service import LiveSyncService
from ...infrastructure.storage.memory_repository import InMemoryCreatorRepository
from .dependencies import get_creator_repository, get_live_sync_service

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    polling: bool
    notifications_suppressed: bool
    poll_interval: float
    last_tick_at: Optional[datetime] = None
    platforms: List[str]
    tracked_creators: int
    live_creators: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    live_sync_service: LiveSyncService = Depends(get_live_sync_service),
    repository: InMemoryCreatorRepository = Depends(get_creator_repository),
) -> HealthResponse:
    """Report poller state and tracked creator counts."""
    tracked, live = repository.counts
    return HealthResponse(
        status="healthy" if live_sync_service.is_running else "idle",
        polling=live_sync_service.is_running,
        notifications_suppressed=live_sync_service.notifications_suppressed,
        poll_interval=live_sync_service.poll_interval,
        last_tick_at=live_sync_service.last_tick_at,
        platforms=live_sync_service.platforms,
        tracked_creators=tracked,
        live_creators=live,
    )
