"""Dependency injection configuration for hexagonal architecture."""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from ..domain.services.live_sync_service import LiveSyncService
from .config import MonitorConfig
from .http.httpx_fetcher import HttpxFetcher
from .notifications.notifiers import CompositeNotifier, LoggingNotifier, WebhookNotifier
from .platforms.factory import LiveStatusFetcherFactory
from .storage.memory_repository import InMemoryCreatorRepository

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Service container for dependency injection."""

    def __init__(self, config: Optional[MonitorConfig] = None):
        """Initialize service container.

        Args:
            config: Monitor configuration, read from the environment when omitted
        """
        self.config = config or MonitorConfig.from_env()
        self._services: Dict[str, Any] = {}
        self._setup_services()

    def _setup_repository(self) -> InMemoryCreatorRepository:
        if not self.config.creators_file:
            return InMemoryCreatorRepository()
        try:
            return InMemoryCreatorRepository.from_file(self.config.creators_file)
        except FileNotFoundError:
            logger.warning(f"⚠️ Creators file not found: {self.config.creators_file} - starting empty")
            return InMemoryCreatorRepository()

    def _setup_notifier(self) -> CompositeNotifier:
        notifiers = [LoggingNotifier()]
        if self.config.webhook_url:
            notifiers.append(WebhookNotifier(self.config.webhook_url, timeout=self.config.http_timeout))
        return CompositeNotifier(notifiers)

    def _setup_services(self):
        """Setup all services and their dependencies."""
        logger.info("🔧 Setting up service container...")

        # Infrastructure adapters
        http_fetcher = HttpxFetcher(timeout=self.config.http_timeout, max_redirects=self.config.max_redirects)
        fetcher_factory = LiveStatusFetcherFactory(
            http_fetcher,
            user_agent=self.config.user_agent,
            twitch_client_id=self.config.twitch_client_id,
            resolver_cache_size=self.config.resolver_cache_size,
        )
        repository = self._setup_repository()
        notifier = self._setup_notifier()

        # Domain services
        live_sync_service = LiveSyncService(
            repository=repository,
            fetchers=fetcher_factory.fetchers(),
            notifier=notifier,
            poll_interval=self.config.poll_interval,
        )

        self._services = {
            'http_fetcher': http_fetcher,
            'fetcher_factory': fetcher_factory,
            'creator_repository': repository,
            'notifier': notifier,
            'live_sync_service': live_sync_service,
        }

        logger.info(f"✅ Service container ready (platforms: {', '.join(fetcher_factory.available_platforms)})")

    def get(self, service_name: str) -> Any:
        """Get a service by name.

        Args:
            service_name: Name of the service

        Returns:
            Service instance

        Raises:
            KeyError: If service not found
        """
        if service_name not in self._services:
            raise KeyError(f"Service '{service_name}' not found")
        return self._services[service_name]

    def register(self, service_name: str, service: Any) -> None:
        """Register or replace a service.

        Args:
            service_name: Name of the service
            service: Service instance
        """
        self._services[service_name] = service

    def get_live_sync_service(self) -> LiveSyncService:
        """Get live sync service."""
        return self.get('live_sync_service')

    def get_creator_repository(self) -> InMemoryCreatorRepository:
        """Get creator repository."""
        return self.get('creator_repository')

    def get_fetcher_factory(self) -> LiveStatusFetcherFactory:
        """Get live status fetcher factory."""
        return self.get('fetcher_factory')

    async def shutdown(self) -> None:
        """Stop polling and release network resources."""
        await self.get_live_sync_service().shutdown()
        await self.get('http_fetcher').shutdown()


# Global service container instance
@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get global service container instance.

    Returns:
        Service container instance
    """
    return ServiceContainer()
