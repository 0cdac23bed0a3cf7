"""Alert polling with at-most-once notification per alert occurrence."""

import asyncio
import logging
from typing import Callable, Optional

from thirdeye.errors import AgentApiError
from thirdeye.models.alert import AlertEvent, AlertKey, alert_label
from thirdeye.services.agent_client import AgentClient
from thirdeye.services.notifications import DesktopNotifier, Notification
from thirdeye.services.preferences import PreferenceStore


class SeenAlertCache:
    """Bounded set of alert keys already notified.

    When an insertion pushes the size past capacity the whole set is cleared
    rather than evicting the oldest entries. A still-active alert may be
    notified again after a reset.
    """

    def __init__(self, capacity: int = 500):
        self.capacity = capacity
        self._keys: set[AlertKey] = set()
        self.resets = 0

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: AlertKey) -> bool:
        return key in self._keys

    def add(self, key: AlertKey) -> bool:
        """Insert a key.

        Returns:
            True if the key was not seen before (caller should notify)
        """
        if key in self._keys:
            return False
        self._keys.add(key)
        if len(self._keys) > self.capacity:
            self._keys.clear()
            self.resets += 1
        return True


class AlertNotifier:
    """Polls /api/alerts on a fixed interval and notifies new alerts.

    Ticks are scheduled on the interval regardless of whether the previous
    request finished, so two ticks may overlap on a slow agent. Both only
    touch the cache through SeenAlertCache.add().
    """

    def __init__(
        self,
        client: AgentClient,
        notifier: DesktopNotifier,
        preferences: PreferenceStore,
        on_click: Optional[Callable[[], None]] = None,
        interval: float = 5.0,
        request_timeout: float = 3.0,
        cache_capacity: int = 500,
    ):
        self.logger = logging.getLogger("thirdeye.alerts")
        self.client = client
        self.notifier = notifier
        self.preferences = preferences
        self.on_click = on_click
        self.interval = interval
        self.request_timeout = request_timeout
        self.cache = SeenAlertCache(cache_capacity)
        self._loop_task: Optional[asyncio.Task] = None
        self._ticks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.running:
            self.logger.warning("Alert notifier already running")
            return
        self.logger.info(f"Alert notifier started (every {self.interval}s)")
        self._loop_task = asyncio.create_task(self._schedule())

    async def _schedule(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            task = asyncio.create_task(self.tick())
            self._ticks.add(task)
            task.add_done_callback(self._ticks.discard)

    async def tick(self) -> int:
        """Run one poll.

        Returns:
            Number of notifications emitted
        """
        if not self.preferences.notifications_enabled:
            return 0

        try:
            response = await self.client.fetch_alerts(timeout=self.request_timeout)
        except AgentApiError as e:
            self.logger.debug(f"Alert poll failed: {e}")
            return 0

        emitted = 0
        for alert in response.active:
            if not self.cache.add(alert.key):
                continue
            try:
                await self.notifier.notify(self._build_notification(alert))
                emitted += 1
            except Exception as e:
                self.logger.error(f"Failed to show alert notification: {e}", exc_info=True)
        return emitted

    def _build_notification(self, alert: AlertEvent) -> Notification:
        return Notification(
            title=alert_label(alert.type),
            message=alert.message,
            on_click=self.on_click,
        )

    async def stop(self) -> None:
        """Cancel the interval and any in-flight tick; idempotent."""
        tasks = list(self._ticks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        if not tasks:
            return

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._ticks.clear()
        self.logger.info("Alert notifier stopped")
