"""API endpoints for managing tracked creators."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...domain.models.creator import Platform, TrackedCreator
from ...domain.models.live_status import LiveStatusRecord
from ...domain.services.live_sync_service import LiveSyncService
from ...infrastructure.storage.memory_repository import (
    CreatorNotFoundError,
    CreatorWithStatus,
    InMemoryCreatorRepository,
)
from .dependencies import get_creator_repository, get_live_sync_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/creators", tags=["creators"])


class CreateCreatorRequest(BaseModel):
    """Request to start tracking a creator."""
    platform: Platform = Field(..., description="Platform of the channel")
    channel_identifier: str = Field(..., min_length=1, description="Channel URL, handle or ID")
    display_name: str = Field(..., min_length=1, description="Label shown in notifications")
    notify_enabled: bool = Field(True, description="Notify when the creator goes live")
    tags: List[str] = Field(default_factory=list)


class UpdateCreatorRequest(BaseModel):
    """Partial update of a tracked creator."""
    channel_identifier: Optional[str] = Field(None, min_length=1)
    display_name: Optional[str] = Field(None, min_length=1)
    notify_enabled: Optional[bool] = None
    tags: Optional[List[str]] = None


@router.get("", response_model=List[CreatorWithStatus])
async def list_creators(
    repository: InMemoryCreatorRepository = Depends(get_creator_repository),
) -> List[CreatorWithStatus]:
    """List tracked creators with their latest live status."""
    return await repository.list_creators_with_status()


@router.post("", response_model=TrackedCreator, status_code=201)
async def create_creator(
    request: CreateCreatorRequest,
    repository: InMemoryCreatorRepository = Depends(get_creator_repository),
) -> TrackedCreator:
    """Start tracking a creator; it is polled from the next tick on."""
    return await repository.add_creator(
        platform=request.platform,
        channel_identifier=request.channel_identifier,
        display_name=request.display_name,
        notify_enabled=request.notify_enabled,
        tags=request.tags,
    )


@router.patch("/{creator_id}", response_model=TrackedCreator)
async def update_creator(
    creator_id: str,
    request: UpdateCreatorRequest,
    repository: InMemoryCreatorRepository = Depends(get_creator_repository),
    live_sync_service: LiveSyncService = Depends(get_live_sync_service),
) -> TrackedCreator:
    """Update a tracked creator."""
    try:
        before = await repository.get_creator(creator_id)
        updated = await repository.update_creator(creator_id, **request.model_dump())
    except CreatorNotFoundError:
        raise HTTPException(status_code=404, detail=f"Creator not found: {creator_id}")

    if before and before.channel_identifier != updated.channel_identifier:
        live_sync_service.forget(creator_id)
    return updated


@router.delete("/{creator_id}", status_code=204)
async def delete_creator(
    creator_id: str,
    repository: InMemoryCreatorRepository = Depends(get_creator_repository),
    live_sync_service: LiveSyncService = Depends(get_live_sync_service),
) -> None:
    """Stop tracking a creator."""
    try:
        await repository.delete_creator(creator_id)
    except CreatorNotFoundError:
        raise HTTPException(status_code=404, detail=f"Creator not found: {creator_id}")
    live_sync_service.forget(creator_id)


@router.get("/{creator_id}/live-status", response_model=Optional[LiveStatusRecord])
async def get_live_status(
    creator_id: str,
    repository: InMemoryCreatorRepository = Depends(get_creator_repository),
) -> Optional[LiveStatusRecord]:
    """Latest stored live status of a creator, null before the first successful fetch."""
    if await repository.get_creator(creator_id) is None:
        raise HTTPException(status_code=404, detail=f"Creator not found: {creator_id}")
    return await repository.get_live_status(creator_id)
