"""Domain service polling tracked creators and detecting went-live transitions."""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Set

from ..models.creator import Platform, TrackedCreator
from ..models.live_status import LiveStatus, TransitionEvent
from ..ports.creator_repository import CreatorRepositoryPort
from ..ports.live_status_fetcher import LiveStatusFetcherPort
from ..ports.notifier import NotifierPort

logger = logging.getLogger(__name__)


class LiveSyncService:
    """Periodic, concurrent live status synchronization.

    Every tick loads the tracked creators, fetches each creator's status
    concurrently, persists successful results and compares them with the
    last observed state to find offline to live transitions. Transitions seen
    during the first tick after ``start()`` are recorded but never announced,
    so creators that were already live at startup do not trigger alerts.
    """

    def __init__(
        self,
        repository: CreatorRepositoryPort,
        fetchers: Mapping[Platform, LiveStatusFetcherPort],
        notifier: Optional[NotifierPort] = None,
        poll_interval: float = 60.0,
    ):
        """Initialize the service.

        Args:
            repository: Source of creators and sink of live statuses
            fetchers: Live status fetcher per platform
            notifier: Receiver of went-live notifications
            poll_interval: Seconds between two ticks
        """
        self._repository = repository
        self._fetchers = dict(fetchers)
        self._notifier = notifier
        self._poll_interval = poll_interval

        self._last_state: Dict[str, bool] = {}
        self._suppress_notifications = False
        self._generation = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_tasks: Set[asyncio.Task] = set()
        self._in_flight: Dict[str, object] = {}
        self._last_tick_at: Optional[datetime] = None

    async def start(self) -> None:
        """Run a tick now and then every ``poll_interval`` seconds."""
        if self.is_running:
            logger.warning("⚠️ Live sync already running")
            return

        logger.info(f"🔄 Starting live sync (interval={self._poll_interval}s)")
        self._generation += 1
        self._suppress_notifications = True
        self._spawn_tick(initial=True)
        self._timer_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop scheduling ticks.

        Ticks already in flight keep running and still persist their results.
        """
        task = self._timer_task
        self._timer_task = None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("🛑 Live sync stopped")

    async def shutdown(self) -> None:
        """Stop scheduling ticks and wait for in-flight ticks to finish."""
        await self.stop()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until every tick spawned so far has completed."""
        while self._tick_tasks:
            await asyncio.gather(*list(self._tick_tasks), return_exceptions=True)

    async def run_once(self, suppress: bool = False) -> List[TransitionEvent]:
        """Run a single tick, notifying each transition as soon as it is detected."""
        return await self.run_tick(suppress=suppress, notify=True)

    async def run_tick(self, suppress: bool = False, notify: bool = False) -> List[TransitionEvent]:
        """Synchronize every tracked creator once.

        Creators whose sync from an earlier tick is still running are skipped,
        so their pending result alone decides their transition.

        Args:
            suppress: Record transitions without emitting events
            notify: Dispatch each event as soon as its creator is synced

        Returns:
            Went-live transitions detected in this tick
        """
        creators = await self._repository.list_tracked_creators()
        pending = [creator for creator in creators if creator.id not in self._in_flight]
        if len(pending) < len(creators):
            logger.debug(f"⏳ Skipping {len(creators) - len(pending)} creators still syncing from an earlier tick")
        logger.debug(f"🔍 Live sync tick for {len(pending)} creators")

        token = object()
        for creator in pending:
            self._in_flight[creator.id] = token
        try:
            results = await asyncio.gather(
                *(self._process_creator(creator, token, suppress, notify) for creator in pending),
                return_exceptions=True,
            )
        finally:
            for creator in pending:
                self._release(creator.id, token)

        events = []
        for creator, result in zip(pending, results):
            if isinstance(result, BaseException):
                logger.error(f"❌ Failed to sync creator {creator.id}: {result}")
            elif result is not None:
                events.append(result)

        self._last_tick_at = datetime.utcnow()
        return events

    async def dispatch(self, events: List[TransitionEvent]) -> None:
        """Deliver went-live notifications.

        A failing notifier never interrupts polling.
        """
        if not self._notifier:
            return

        for event in events:
            try:
                logger.info(f"🔔 {event.display_name} went live on {event.platform_label}: {event.url}")
                await self._notifier.notify_went_live(event.display_name, event.platform_label, event.url)
            except Exception as e:
                logger.warning(f"⚠️ Failed to notify for creator {event.creator_id}: {e}")

    async def _poll_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._poll_interval)
                self._spawn_tick(initial=False)
        except asyncio.CancelledError:
            logger.debug("🛑 Live sync timer cancelled")
            raise

    def _spawn_tick(self, initial: bool) -> None:
        task = asyncio.create_task(self._scheduled_tick(initial, self._generation))
        self._tick_tasks.add(task)
        task.add_done_callback(self._tick_tasks.discard)

    async def _scheduled_tick(self, initial: bool, generation: int) -> None:
        try:
            await self.run_once(suppress=initial)
        except Exception as e:
            logger.error(f"❌ Live sync tick failed: {e}", exc_info=True)
        finally:
            # A tick left over from before a restart must not end the new suppression window.
            if initial and generation == self._generation:
                self._suppress_notifications = False
                logger.info("✅ Initial live sync completed, notifications enabled")

    async def _process_creator(
        self, creator: TrackedCreator, token: object, suppress: bool, notify: bool
    ) -> Optional[TransitionEvent]:
        try:
            event = await self._sync_creator(creator, suppress)
        finally:
            self._release(creator.id, token)

        if event and notify:
            await self.dispatch([event])
        return event

    def _release(self, creator_id: str, token: object) -> None:
        if self._in_flight.get(creator_id) is token:
            del self._in_flight[creator_id]

    async def _sync_creator(self, creator: TrackedCreator, suppress: bool = False) -> Optional[TransitionEvent]:
        try:
            fetcher = self._fetchers.get(creator.platform)
            if fetcher is None:
                logger.warning(f"⚠️ No live status fetcher for platform {creator.platform} (creator {creator.id})")
                return None

            logger.debug(f"🔍 Fetching {creator.platform.label} live status for {creator.id} ({creator.channel_identifier})")
            outcome = await fetcher.fetch(creator.channel_identifier)
            if not outcome.is_available:
                logger.warning(
                    f"⚠️ {creator.platform.label} live status unavailable for {creator.id}: {outcome.reason}"
                )
                return None

            status = outcome.status
            if status.is_live and not status.stream_url:
                status = status.model_copy(update={"stream_url": fetcher.channel_url(creator.channel_identifier)})

            await self._repository.upsert_live_status(creator.id, status)
            logger.info(
                f"✅ Updated {creator.platform.label} live status for {creator.id}: "
                f"is_live={status.is_live} viewers={status.viewer_count}"
            )

            return self._evaluate_transition(creator, status, suppress)

        except Exception as e:
            logger.error(f"❌ Failed to sync creator {creator.id}: {e}", exc_info=True)
            return None

    def _evaluate_transition(
        self, creator: TrackedCreator, status: LiveStatus, suppress: bool
    ) -> Optional[TransitionEvent]:
        was_live = self._last_state.get(creator.id, False)
        self._last_state[creator.id] = status.is_live

        if not status.is_live or was_live:
            return None
        if suppress:
            logger.debug(f"🤫 {creator.id} is live during the initial sync, not notifying")
            return None
        if not creator.notify_enabled:
            return None

        return TransitionEvent(
            creator_id=creator.id,
            display_name=creator.display_name,
            platform_label=creator.platform.label,
            url=status.stream_url or self._fetchers[creator.platform].channel_url(creator.channel_identifier),
        )

    def forget(self, creator_id: str) -> None:
        """Drop the last observed state of a creator."""
        self._last_state.pop(creator_id, None)

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def notifications_suppressed(self) -> bool:
        return self._suppress_notifications

    @property
    def last_tick_at(self) -> Optional[datetime]:
        return self._last_tick_at

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def platforms(self) -> List[str]:
        return sorted(platform.value for platform in self._fetchers)

    def last_observed(self, creator_id: str) -> Optional[bool]:
        """Last live state recorded for a creator, None if never observed."""
        return self._last_state.get(creator_id)
