"""Configuration management for the live monitor."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .platforms.twitch_fetcher import TWITCH_PUBLIC_CLIENT_ID

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "LiveMonitor/1.0 (+https://github.com/live-monitor)"


class MonitorConfig(BaseModel):
    """Runtime settings of the live monitor."""

    poll_interval: float = Field(default=60.0, gt=0, description="Seconds between two polling ticks")
    http_timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")
    max_redirects: int = Field(default=5, ge=0, description="Redirects followed per request")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User agent for platform requests")
    twitch_client_id: str = Field(default=TWITCH_PUBLIC_CLIENT_ID, description="Public Twitch client ID")
    resolver_cache_size: int = Field(default=1024, gt=0, description="Channel resolution cache bound")
    webhook_url: Optional[str] = Field(default=None, description="Webhook receiving went-live notifications")
    creators_file: Optional[str] = Field(default=None, description="JSON file seeding the tracked creators")
    log_level: str = Field(default="INFO", description="Root log level")

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "MonitorConfig":
        """Create configuration from environment variables.

        Args:
            load_env_file: Whether to read a ``.env`` file first

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value
        """
        if load_env_file:
            load_dotenv()

        values = {
            "poll_interval": os.getenv("LIVE_MONITOR_POLL_INTERVAL"),
            "http_timeout": os.getenv("LIVE_MONITOR_HTTP_TIMEOUT"),
            "max_redirects": os.getenv("LIVE_MONITOR_MAX_REDIRECTS"),
            "user_agent": os.getenv("LIVE_MONITOR_USER_AGENT"),
            "twitch_client_id": os.getenv("TWITCH_CLIENT_ID"),
            "resolver_cache_size": os.getenv("LIVE_MONITOR_RESOLVER_CACHE_SIZE"),
            "webhook_url": os.getenv("NOTIFY_WEBHOOK_URL"),
            "creators_file": os.getenv("LIVE_MONITOR_CREATORS_FILE"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        config = cls(**{key: value for key, value in values.items() if value})

        if config.webhook_url:
            logger.info("🔔 Webhook notifications enabled")
        else:
            logger.info("📝 No NOTIFY_WEBHOOK_URL set - notifications are only logged")

        return config


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
