"""FastAPI dependencies resolving services from the application container."""

from fastapi import Request

from ...domain.services.live_sync_service import LiveSyncService
from ...infrastructure.dependencies import ServiceContainer
from ...infrastructure.storage.memory_repository import InMemoryCreatorRepository


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency for the service container."""
    return request.app.state.container


def get_live_sync_service(request: Request) -> LiveSyncService:
    """FastAPI dependency for the live sync service."""
    return get_container(request).get_live_sync_service()


def get_creator_repository(request: Request) -> InMemoryCreatorRepository:
    """FastAPI dependency for the creator repository."""
    return get_container(request).get_creator_repository()
