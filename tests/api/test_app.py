"""Tests for FastAPI application."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from live_monitor.api.app import create_app
from live_monitor.domain.models.creator import Platform
from live_monitor.domain.models.live_status import FetchOutcome, LiveStatus
from live_monitor.domain.ports.live_status_fetcher import LiveStatusFetcherPort
from live_monitor.domain.services.live_sync_service import LiveSyncService
from live_monitor.infrastructure.config import MonitorConfig
from live_monitor.infrastructure.dependencies import ServiceContainer


class TestFetcher(LiveStatusFetcherPort):
    """Test fetcher reporting a fixed status for every channel."""

    __test__ = False
    platform = Platform.TWITCH

    def __init__(self):
        self.outcome = FetchOutcome.ok(
            LiveStatus(is_live=True, title="Ranked Grind", viewer_count=1500, stream_url="https://www.twitch.tv/alice")
        )

    async def fetch(self, channel_identifier: str) -> FetchOutcome:
        return self.outcome

    def channel_url(self, channel_identifier: str) -> str:
        return f"https://www.twitch.tv/{channel_identifier}"


@pytest.fixture
def notifier():
    """Create a mock notifier."""
    notifier = AsyncMock()
    notifier.notify_went_live = AsyncMock()
    return notifier


@pytest.fixture
def container(notifier) -> ServiceContainer:
    """Create a container whose sync service uses the test fetcher."""
    container = ServiceContainer(MonitorConfig(poll_interval=3600))
    service = LiveSyncService(
        repository=container.get_creator_repository(),
        fetchers={Platform.TWITCH: TestFetcher()},
        notifier=notifier,
        poll_interval=3600,
    )
    container.register("live_sync_service", service)
    return container


@pytest.fixture
def test_client(container) -> TestClient:
    """Create a test client without background polling."""
    with TestClient(create_app(container, start_polling=False)) as client:
        yield client


def create_alice(client: TestClient) -> dict:
    response = client.post("/creators", json={
        "platform": "twitch",
        "channel_identifier": "https://www.twitch.tv/alice",
        "display_name": "Alice",
    })
    assert response.status_code == 201
    return response.json()


def test_health_check(test_client: TestClient):
    """Test health check endpoint."""
    response = test_client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "idle"
    assert data["polling"] is False
    assert data["platforms"] == ["twitch"]
    assert data["tracked_creators"] == 0
    assert data["last_tick_at"] is None


def test_health_check_while_polling(container):
    """Test that the lifespan starts and stops the poller."""
    with TestClient(create_app(container)) as client:
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["polling"] is True
        assert data["poll_interval"] == 3600

    assert container.get_live_sync_service().is_running is False


def test_create_and_list_creators(test_client: TestClient):
    """Test registering a creator."""
    created = create_alice(test_client)
    assert created["platform"] == "twitch"
    assert created["notify_enabled"] is True

    response = test_client.get("/creators")
    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["creator"]["id"] == created["id"]
    assert rows[0]["live_status"] is None


def test_create_creator_validation(test_client: TestClient):
    """Test that unknown platforms are rejected."""
    response = test_client.post("/creators", json={
        "platform": "mixer",
        "channel_identifier": "alice",
        "display_name": "Alice",
    })
    assert response.status_code == 422


def test_sync_reports_transitions(test_client: TestClient, notifier):
    """Test running a sync on demand."""
    created = create_alice(test_client)

    response = test_client.post("/sync")
    assert response.status_code == 200
    transitions = response.json()["transitions"]
    assert len(transitions) == 1
    assert transitions[0]["creator_id"] == created["id"]
    assert transitions[0]["url"] == "https://www.twitch.tv/alice"
    notifier.notify_went_live.assert_awaited_once_with("Alice", "Twitch", "https://www.twitch.tv/alice")

    status = test_client.get(f"/creators/{created['id']}/live-status").json()
    assert status["is_live"] is True
    assert status["viewer_count"] == 1500

    # Still live: no second transition
    assert test_client.post("/sync").json()["transitions"] == []


def test_live_status_before_first_sync(test_client: TestClient):
    """Test that a creator without a successful fetch has no status."""
    created = create_alice(test_client)

    response = test_client.get(f"/creators/{created['id']}/live-status")
    assert response.status_code == 200
    assert response.json() is None


def test_update_creator(test_client: TestClient):
    """Test renaming and muting a creator."""
    created = create_alice(test_client)

    response = test_client.patch(f"/creators/{created['id']}", json={
        "display_name": "Alice B",
        "notify_enabled": False,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["display_name"] == "Alice B"
    assert data["notify_enabled"] is False
    assert data["channel_identifier"] == "https://www.twitch.tv/alice"


def test_delete_creator(test_client: TestClient):
    """Test removing a creator."""
    created = create_alice(test_client)

    assert test_client.delete(f"/creators/{created['id']}").status_code == 204
    assert test_client.get("/creators").json() == []
    assert test_client.get(f"/creators/{created['id']}/live-status").status_code == 404


@pytest.mark.parametrize("method, path", [
    ("patch", "/creators/missing"),
    ("delete", "/creators/missing"),
    ("get", "/creators/missing/live-status"),
])
def test_unknown_creator(test_client: TestClient, method, path):
    """Test 404 for unknown creators."""
    kwargs = {"json": {"display_name": "X"}} if method == "patch" else {}
    response = getattr(test_client, method)(path, **kwargs)
    assert response.status_code == 404
