"""Tests for the live sync service."""

import asyncio
from typing import Dict, List, Optional

import pytest
from unittest.mock import AsyncMock

from live_monitor.domain.models.creator import Platform
from live_monitor.domain.models.live_status import FetchOutcome, LiveStatus
from live_monitor.domain.ports.live_status_fetcher import LiveStatusFetcherPort
from live_monitor.domain.services.live_sync_service import LiveSyncService
from live_monitor.infrastructure.storage.memory_repository import InMemoryCreatorRepository


class ScriptedFetcher(LiveStatusFetcherPort):
    """Fetcher replaying scripted outcomes per channel.

    The last scripted outcome of a channel repeats once the others are used.
    """

    def __init__(self, platform: Platform = Platform.TWITCH):
        self.platform = platform
        self.outcomes: Dict[str, list] = {}
        self.calls: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}

    def script(self, channel_identifier: str, *outcomes) -> None:
        self.outcomes[channel_identifier] = list(outcomes)

    async def fetch(self, channel_identifier: str) -> FetchOutcome:
        self.calls.append(channel_identifier)
        gate = self.gates.get(channel_identifier)
        if gate is not None:
            await gate.wait()
        queue = self.outcomes[channel_identifier]
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def channel_url(self, channel_identifier: str) -> str:
        return f"https://www.twitch.tv/{channel_identifier}"


def live(url: Optional[str] = "https://www.twitch.tv/alice", title: str = "Ranked Grind") -> LiveStatus:
    return LiveStatus(is_live=True, title=title, viewer_count=1500, stream_url=url)


OFFLINE = FetchOutcome.ok(LiveStatus.offline())
UNAVAILABLE = FetchOutcome.unavailable("HTTP 503")


async def wait_until(condition, timeout: float = 2.0) -> None:
    async def poll():
        while not condition():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def fetcher() -> ScriptedFetcher:
    """Create a scripted Twitch fetcher."""
    return ScriptedFetcher()


@pytest.fixture
def notifier():
    """Create a mock notifier."""
    notifier = AsyncMock()
    notifier.notify_went_live = AsyncMock()
    return notifier


@pytest.fixture
def repository() -> InMemoryCreatorRepository:
    """Create an empty repository."""
    return InMemoryCreatorRepository()


@pytest.fixture
def service(repository, fetcher, notifier) -> LiveSyncService:
    """Create a live sync service with a long poll interval."""
    return LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier, poll_interval=3600)


@pytest.mark.asyncio
async def test_offline_to_live_notifies_once(fetcher, notifier, make_creator):
    """Test that a transition fires exactly one notification with the new URL."""
    creator = make_creator()
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)
    fetcher.script("alice", OFFLINE, FetchOutcome.ok(live()))

    assert await service.run_once() == []
    events = await service.run_once()
    await service.run_once()

    assert len(events) == 1
    assert events[0].creator_id == creator.id
    notifier.notify_went_live.assert_awaited_once_with("Alice", "Twitch", "https://www.twitch.tv/alice")

    record = await repository.get_live_status(creator.id)
    assert record.is_live is True
    assert record.title == "Ranked Grind"
    assert record.viewer_count == 1500


@pytest.mark.asyncio
async def test_live_again_after_offline_notifies_again(fetcher, notifier, make_creator):
    """Test that every offline to live transition is announced."""
    repository = InMemoryCreatorRepository([make_creator()])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)
    fetcher.script("alice", FetchOutcome.ok(live()), OFFLINE, FetchOutcome.ok(live()))

    for _ in range(3):
        await service.run_once()

    assert notifier.notify_went_live.await_count == 2


@pytest.mark.asyncio
async def test_first_tick_after_start_is_silent(fetcher, notifier, make_creator):
    """Test that creators already live at startup are not announced."""
    creator = make_creator()
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier, poll_interval=3600)
    fetcher.script("alice", FetchOutcome.ok(live()))

    await service.start()
    assert service.notifications_suppressed is True
    await service.wait_idle()

    try:
        assert service.is_running is True
        assert service.notifications_suppressed is False
        assert service.last_observed(creator.id) is True
        assert (await repository.get_live_status(creator.id)).is_live is True
        notifier.notify_went_live.assert_not_awaited()

        # Still live on the next tick: no transition
        await service.run_once()
        notifier.notify_went_live.assert_not_awaited()
    finally:
        await service.shutdown()

    assert service.is_running is False


@pytest.mark.asyncio
async def test_restart_suppresses_first_tick_again(fetcher, notifier, make_creator):
    """Test that suppression applies to the first tick of every start."""
    repository = InMemoryCreatorRepository([make_creator()])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier, poll_interval=3600)
    fetcher.script("alice", OFFLINE, FetchOutcome.ok(live()))

    await service.start()
    await service.wait_idle()
    await service.stop()

    await service.start()
    await service.wait_idle()
    await service.shutdown()

    notifier.notify_went_live.assert_not_awaited()


@pytest.mark.asyncio
async def test_stale_initial_tick_keeps_new_suppression(fetcher, make_creator):
    """Test that an initial tick from before a restart cannot lift suppression."""
    fetcher.script("one", OFFLINE)
    fetcher.script("two", OFFLINE)
    fetcher.gates = {"one": asyncio.Event(), "two": asyncio.Event()}
    repository = InMemoryCreatorRepository([make_creator(channel_identifier="one")])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, poll_interval=3600)

    await service.start()
    await wait_until(lambda: fetcher.calls == ["one"])
    await service.stop()

    # The restarted initial tick skips "one", still in flight, and blocks on "two"
    await repository.add_creator(Platform.TWITCH, "two", "Two")
    await service.start()
    await wait_until(lambda: fetcher.calls == ["one", "two"])

    fetcher.gates["one"].set()
    await wait_until(lambda: service.last_tick_at is not None)
    assert service.notifications_suppressed is True

    fetcher.gates["two"].set()
    await service.shutdown()
    assert service.notifications_suppressed is False


@pytest.mark.asyncio
async def test_ticks_overlapping_a_slow_initial_tick_still_notify(notifier, make_creator):
    """Test that only the initial tick is silent, even while it is still running."""
    fetcher = ScriptedFetcher()
    fetcher.script("slow", FetchOutcome.ok(live(url="https://www.twitch.tv/slow")))
    fetcher.script("bob", OFFLINE, OFFLINE, FetchOutcome.ok(live(url="https://www.twitch.tv/bob")))
    fetcher.gates["slow"] = asyncio.Event()
    slow = make_creator(display_name="Slow", channel_identifier="slow")
    bob = make_creator(display_name="Bob", channel_identifier="bob")
    repository = InMemoryCreatorRepository([slow, bob])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier, poll_interval=0.01)

    await service.start()
    try:
        await wait_until(lambda: notifier.notify_went_live.await_count >= 1)
        assert service.notifications_suppressed is True
        assert fetcher.calls.count("slow") == 1
        notifier.notify_went_live.assert_awaited_once_with("Bob", "Twitch", "https://www.twitch.tv/bob")
    finally:
        fetcher.gates["slow"].set()
        await service.shutdown()

    # "slow" was live when the initial tick fetched it: recorded, never announced
    assert service.last_observed(slow.id) is True
    assert notifier.notify_went_live.await_count == 1


@pytest.mark.asyncio
async def test_run_once_notifies_before_slow_creators_finish(notifier, make_creator):
    """Test that a slow creator does not delay the notifications of the others."""
    fetcher = ScriptedFetcher()
    fetcher.script("slow", OFFLINE)
    fetcher.script("bob", FetchOutcome.ok(live(url="https://www.twitch.tv/bob")))
    fetcher.gates["slow"] = asyncio.Event()
    bob = make_creator(display_name="Bob", channel_identifier="bob")
    repository = InMemoryCreatorRepository([make_creator(channel_identifier="slow"), bob])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)

    tick = asyncio.create_task(service.run_once())
    await wait_until(lambda: notifier.notify_went_live.await_count == 1)
    assert not tick.done()
    notifier.notify_went_live.assert_awaited_once_with("Bob", "Twitch", "https://www.twitch.tv/bob")

    fetcher.gates["slow"].set()
    events = await tick

    assert [event.creator_id for event in events] == [bob.id]
    assert notifier.notify_went_live.await_count == 1


@pytest.mark.asyncio
async def test_creator_still_syncing_is_skipped(fetcher, make_creator):
    """Test that a concurrent tick does not fetch a creator twice."""
    fetcher.script("one", OFFLINE)
    fetcher.script("two", OFFLINE)
    fetcher.gates["one"] = asyncio.Event()
    two = make_creator(channel_identifier="two")
    repository = InMemoryCreatorRepository([make_creator(channel_identifier="one"), two])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher})

    first = asyncio.create_task(service.run_tick())
    await wait_until(lambda: service.last_observed(two.id) is not None)
    await service.run_tick()
    assert sorted(fetcher.calls) == ["one", "two", "two"]

    fetcher.gates["one"].set()
    await first
    await service.run_tick()
    assert fetcher.calls.count("one") == 2


@pytest.mark.asyncio
async def test_start_twice_is_ignored(service):
    """Test that a second start does not spawn a second loop."""
    await service.start()
    timer = service._timer_task
    await service.start()

    assert service._timer_task is timer
    await service.shutdown()


@pytest.mark.asyncio
async def test_failing_creator_does_not_affect_others(notifier, make_creator):
    """Test that a fetch exception for one creator is isolated."""
    broken = make_creator(display_name="Broken", channel_identifier="broken")
    healthy = make_creator(display_name="Bob", channel_identifier="bob")
    fetcher = ScriptedFetcher()
    fetcher.script("broken", RuntimeError("boom"))
    fetcher.script("bob", FetchOutcome.ok(live(url="https://www.twitch.tv/bob")))
    repository = InMemoryCreatorRepository([broken, healthy])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)

    events = await service.run_once()

    assert [event.creator_id for event in events] == [healthy.id]
    assert await repository.get_live_status(broken.id) is None
    assert (await repository.get_live_status(healthy.id)).is_live is True
    notifier.notify_went_live.assert_awaited_once_with("Bob", "Twitch", "https://www.twitch.tv/bob")


@pytest.mark.asyncio
async def test_unavailable_outcome_leaves_creator_untouched(fetcher, notifier, make_creator):
    """Test that an unavailable fetch neither writes nor changes the last state."""
    creator = make_creator()
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)
    fetcher.script("alice", FetchOutcome.ok(live(title="First")), UNAVAILABLE, FetchOutcome.ok(live(title="Second")))

    await service.run_once()
    await service.run_once()

    record = await repository.get_live_status(creator.id)
    assert record.is_live is True
    assert record.title == "First"
    assert service.last_observed(creator.id) is True

    await service.run_once()
    assert notifier.notify_went_live.await_count == 1
    assert (await repository.get_live_status(creator.id)).title == "Second"


@pytest.mark.asyncio
async def test_unavailable_before_first_success_writes_nothing(fetcher, make_creator):
    """Test that a creator never fetched successfully has no stored status."""
    creator = make_creator()
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher})
    fetcher.script("alice", UNAVAILABLE)

    assert await service.run_once() == []
    assert await repository.get_live_status(creator.id) is None
    assert service.last_observed(creator.id) is None


@pytest.mark.asyncio
async def test_offline_status_is_persisted_without_metadata(fetcher, make_creator):
    """Test that an offline write clears the previous live metadata."""
    creator = make_creator()
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher})
    fetcher.script("alice", FetchOutcome.ok(live()), OFFLINE)

    await service.run_once()
    await service.run_once()

    record = await repository.get_live_status(creator.id)
    assert record.is_live is False
    assert record.title is None
    assert record.viewer_count is None
    assert record.started_at is None
    assert record.stream_url is None


@pytest.mark.asyncio
async def test_missing_stream_url_uses_channel_url(fetcher, notifier, make_creator):
    """Test that a live status without URL falls back to the channel page."""
    creator = make_creator()
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)
    fetcher.script("alice", FetchOutcome.ok(live(url=None)))

    await service.run_once()

    assert (await repository.get_live_status(creator.id)).stream_url == "https://www.twitch.tv/alice"
    notifier.notify_went_live.assert_awaited_once_with("Alice", "Twitch", "https://www.twitch.tv/alice")


@pytest.mark.asyncio
async def test_notifications_disabled_still_tracks_state(fetcher, notifier, make_creator):
    """Test that muted creators are synced but never announced."""
    creator = make_creator(notify_enabled=False)
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)
    fetcher.script("alice", FetchOutcome.ok(live()))

    assert await service.run_once() == []
    assert service.last_observed(creator.id) is True
    assert (await repository.get_live_status(creator.id)).is_live is True
    notifier.notify_went_live.assert_not_awaited()


@pytest.mark.asyncio
async def test_notifier_failure_is_tolerated(fetcher, notifier, make_creator):
    """Test that a failing notifier does not break the tick."""
    alice = make_creator()
    bob = make_creator(display_name="Bob", channel_identifier="bob")
    repository = InMemoryCreatorRepository([alice, bob])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)
    fetcher.script("alice", FetchOutcome.ok(live()))
    fetcher.script("bob", FetchOutcome.ok(live(url="https://www.twitch.tv/bob")))
    notifier.notify_went_live.side_effect = RuntimeError("push service down")

    events = await service.run_once()

    assert len(events) == 2
    assert notifier.notify_went_live.await_count == 2
    assert (await repository.get_live_status(bob.id)).is_live is True


@pytest.mark.asyncio
async def test_creator_without_fetcher_is_skipped(fetcher, notifier, make_creator):
    """Test that a platform without a registered fetcher is ignored."""
    creator = make_creator(platform=Platform.YOUTUBE, channel_identifier="@alice")
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)

    assert await service.run_once() == []
    assert fetcher.calls == []
    assert await repository.get_live_status(creator.id) is None


@pytest.mark.asyncio
async def test_creators_are_fetched_concurrently(make_creator):
    """Test that one slow creator does not serialize the tick."""
    started = []
    release = asyncio.Event()

    class SlowFetcher(ScriptedFetcher):
        async def fetch(self, channel_identifier: str) -> FetchOutcome:
            started.append(channel_identifier)
            await release.wait()
            return OFFLINE

    repository = InMemoryCreatorRepository([
        make_creator(channel_identifier="one"),
        make_creator(channel_identifier="two"),
    ])
    service = LiveSyncService(repository, {Platform.TWITCH: SlowFetcher()})

    tick = asyncio.create_task(service.run_tick())
    while len(started) < 2:
        await asyncio.sleep(0)
    release.set()
    await tick

    assert sorted(started) == ["one", "two"]


@pytest.mark.asyncio
async def test_forget_resets_last_state(fetcher, notifier, make_creator):
    """Test that forgetting a creator lets its next live status notify."""
    creator = make_creator()
    repository = InMemoryCreatorRepository([creator])
    service = LiveSyncService(repository, {Platform.TWITCH: fetcher}, notifier)
    fetcher.script("alice", FetchOutcome.ok(live()))

    await service.run_once()
    service.forget(creator.id)
    await service.run_once()

    assert notifier.notify_went_live.await_count == 2


def test_service_properties(service):
    """Test the read-only service state."""
    assert service.poll_interval == 3600
    assert service.platforms == ["twitch"]
    assert service.is_running is False
    assert service.last_tick_at is None
