"""Cross-boundary state shared between the shell and its UI surfaces.

The splash process and the main UI poll this state through the bridge API
(see thirdeye.api.routes); nothing here knows about HTTP.
"""

import logging
from collections import deque
from typing import Any, Callable, Optional

from pydantic import BaseModel

from thirdeye.models.progress import DownloadProgress, ProgressState, SplashSnapshot

UPDATE_READY = "update-ready"
SPLASH_PROGRESS = "splash-progress"
SPLASH_DOWNLOAD = "splash-download"
WINDOW_SHOW = "window-show"
WINDOW_FOCUS = "window-focus"
NOTIFICATION = "notification"


class UiEvent(BaseModel):
    """One event delivered to the UI, ordered by seq."""

    seq: int
    channel: str
    payload: Any = None


class UiBridge:
    """Bounded event log plus the current splash snapshot."""

    def __init__(self, max_events: int = 256):
        self.logger = logging.getLogger("thirdeye.bridge")
        self._events: deque[UiEvent] = deque(maxlen=max_events)
        self._seq = 0
        self.splash = SplashSnapshot(progress=ProgressState())

    def emit(self, channel: str, payload: Any = None) -> UiEvent:
        self._seq += 1
        event = UiEvent(seq=self._seq, channel=channel, payload=payload)
        self._events.append(event)
        self.logger.debug(f"UI event #{event.seq}: {channel}")
        return event

    def events_after(self, seq: int = 0, channel: Optional[str] = None) -> list[UiEvent]:
        """Events newer than seq, optionally filtered by channel."""
        return [
            e for e in self._events
            if e.seq > seq and (channel is None or e.channel == channel)
        ]

    @property
    def last_seq(self) -> int:
        return self._seq

    def set_splash_progress(self, state: ProgressState) -> None:
        self.splash.progress = state
        self.emit(SPLASH_PROGRESS, state.model_dump())

    def set_splash_download(self, download: Optional[DownloadProgress]) -> None:
        self.splash.download = download
        self.emit(SPLASH_DOWNLOAD, download.model_dump() if download else None)

    def close_splash(self) -> None:
        self.splash.closed = True


class MainWindow:
    """State of the main UI surface.

    The renderer is external: it reports readiness through mark_ready() and
    follows window-show / window-focus events.
    """

    def __init__(self, bridge: UiBridge):
        self.logger = logging.getLogger("thirdeye.window")
        self.bridge = bridge
        self.visible = False
        self.focused = False
        self.ready = False
        self._ready_listeners: list[Callable[[], None]] = []

    def reveal(self) -> None:
        self.visible = True
        self.bridge.emit(WINDOW_SHOW)
        self.logger.info("Main window revealed")

    def focus(self) -> None:
        self.visible = True
        self.focused = True
        self.bridge.emit(WINDOW_FOCUS)

    def on_ready(self, callback: Callable[[], None]) -> None:
        self._ready_listeners.append(callback)

    def mark_ready(self) -> bool:
        """Record that the UI finished loading.

        Returns:
            True on the first call, False afterwards
        """
        if self.ready:
            return False
        self.ready = True
        self.logger.info("Main window reported ready")
        for callback in list(self._ready_listeners):
            try:
                callback()
            except Exception as e:
                self.logger.error(f"Ready listener failed: {e}", exc_info=True)
        return True
