"""Desktop notifications with click actions routed through the bridge."""

import asyncio
import itertools
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Optional

from plyer import notification as os_notification

from thirdeye.ui.bridge import NOTIFICATION, UiBridge


@dataclass
class Notification:
    """One user-facing notification."""

    title: str
    message: str
    on_click: Optional[Callable[[], None]] = None
    id: int = field(default=0)


class DesktopNotifier:
    """Shows OS notifications via plyer and mirrors them to the UI bridge.

    plyer has no click callbacks, so click actions are kept in a small
    registry and triggered through the bridge API
    (POST /notifications/{id}/click).
    """

    def __init__(
        self,
        bridge: UiBridge,
        app_name: str = "The Third Eye",
        max_pending: int = 50,
        use_os: bool = True,
    ):
        self.logger = logging.getLogger("thirdeye.notifications")
        self.bridge = bridge
        self.app_name = app_name
        self.max_pending = max_pending
        self.use_os = use_os
        self._ids = itertools.count(1)
        self._pending: OrderedDict[int, Notification] = OrderedDict()

    def _show_os(self, notification: Notification) -> bool:
        try:
            os_notification.notify(
                title=notification.title,
                message=notification.message,
                app_name=self.app_name,
                timeout=10,
            )
            return True
        except Exception as e:
            # No notification backend on this desktop
            self.logger.debug(f"OS notification failed: {e}")
            return False

    async def notify(self, notification: Notification) -> int:
        """Emit a notification.

        Returns:
            Notification id usable with click()
        """
        notification.id = next(self._ids)
        self._pending[notification.id] = notification
        while len(self._pending) > self.max_pending:
            self._pending.popitem(last=False)

        self.bridge.emit(
            NOTIFICATION,
            {"id": notification.id, "title": notification.title, "message": notification.message},
        )
        self.logger.info(f"Notification #{notification.id}: {notification.title}")

        if self.use_os:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._show_os, notification)
        return notification.id

    def click(self, notification_id: int) -> bool:
        """Run a notification's click action.

        Returns:
            False if the id is unknown or expired
        """
        notification = self._pending.get(notification_id)
        if notification is None:
            return False
        if notification.on_click is not None:
            notification.on_click()
        return True
