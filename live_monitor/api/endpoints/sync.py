"""API endpoint for triggering a live sync on demand."""

import logging
from dataclasses import asdict
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...domain.services.live_sync_service import LiveSyncService
from .dependencies import get_live_sync_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


class TransitionEventResponse(BaseModel):
    """A went-live transition detected by a sync."""
    creator_id: str
    display_name: str
    platform_label: str
    url: str
    detected_at: datetime


class SyncResponse(BaseModel):
    """Result of an on-demand sync."""
    transitions: List[TransitionEventResponse]


@router.post("/sync", response_model=SyncResponse)
async def run_sync(
    live_sync_service: LiveSyncService = Depends(get_live_sync_service),
) -> SyncResponse:
    """Poll every creator now and dispatch any went-live notifications."""
    logger.info("🔄 On-demand live sync requested")
    events = await live_sync_service.run_once()
    return SyncResponse(transitions=[TransitionEventResponse(**asdict(event)) for event in events])
