"""One-shot update check/download state machine raced against a timeout."""

import asyncio
import logging
from typing import Callable, Optional, Protocol

from thirdeye.models.progress import DownloadProgress
from thirdeye.models.status import UpdatePhase
from thirdeye.models.update import UpdateEvent, UpdateResult
from thirdeye.services.progress import UPDATE_RANGE

UpdateProgressFn = Callable[[int, str, Optional[DownloadProgress]], None]

_AVAILABLE_PERCENT = UPDATE_RANGE.start + 5
_DOWNLOAD_SPAN = 40


class UpdateSource(Protocol):
    """What the coordinator needs from an update source."""

    async def check(self, emit: Callable[[UpdateEvent], None]) -> None: ...

    def quit_and_install(self) -> bool: ...


def describe_event(event: UpdateEvent) -> tuple[int, str, Optional[DownloadProgress]]:
    """Map an update event to (global percent, splash label, download info)."""
    if event.phase == UpdatePhase.CHECKING:
        return UPDATE_RANGE.start, "Checking for updates...", None
    if event.phase == UpdatePhase.AVAILABLE:
        return _AVAILABLE_PERCENT, f"Update {event.version} available", None
    if event.phase == UpdatePhase.DOWNLOADING:
        percent = event.percent or 0.0
        download = DownloadProgress(
            percent=percent,
            transferred=event.transferred or 0,
            total=event.total or 0,
            speed=event.speed or 0.0,
        )
        return (
            round(_AVAILABLE_PERCENT + _DOWNLOAD_SPAN * percent / 100),
            f"Downloading update... {int(percent)}%",
            download,
        )
    if event.phase == UpdatePhase.DOWNLOADED:
        return UPDATE_RANGE.end, f"Update {event.version} ready", None
    if event.phase == UpdatePhase.NOT_AVAILABLE:
        return UPDATE_RANGE.end, "Up to date", None
    if event.phase == UpdatePhase.ERRORED:
        return UPDATE_RANGE.end, "Update check failed", None
    return UPDATE_RANGE.start, "", None


class UpdateCoordinator:
    """Runs the update source once and resolves a single UpdateResult.

    The first of (a) a terminal event from the source or (b) the hard timeout
    settles the result. Events arriving afterwards are still consumed by the
    receive loop and logged, but never settle again. A late Downloaded still
    records pending_version so the UI can offer the install.
    """

    def __init__(
        self,
        source_factory: Optional[Callable[[], UpdateSource]],
        packaged: bool,
        timeout: float = 30.0,
    ):
        """Initialize update coordinator.

        Args:
            source_factory: Builds the update source; None disables updates
            packaged: False in development, where updates are never checked
            timeout: Seconds before run() resolves with no update
        """
        self.logger = logging.getLogger("thirdeye.update")
        self.source_factory = source_factory
        self.packaged = packaged
        self.timeout = timeout

        self.state: UpdateEvent = UpdateEvent.idle()
        self.pending_version: Optional[str] = None
        self.result: Optional[UpdateResult] = None
        self.resolved_by: Optional[str] = None

        self._source: Optional[UpdateSource] = None
        self._future: Optional[asyncio.Future] = None
        self._queue: Optional[asyncio.Queue] = None
        self._on_progress: Optional[UpdateProgressFn] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._check_task: Optional[asyncio.Task] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._install_requested = False
        self._downloaded_listeners: list[Callable[[str], None]] = []

    @property
    def resolved(self) -> bool:
        return self._future is not None and self._future.done()

    @property
    def source_available(self) -> bool:
        return self._source is not None

    def on_downloaded(self, callback: Callable[[str], None]) -> None:
        self._downloaded_listeners.append(callback)

    async def run(self, on_progress: Optional[UpdateProgressFn] = None) -> UpdateResult:
        """Check for and download an update, resolving exactly once.

        Args:
            on_progress: Receives (percent, label, download) for each event
                until the result is settled

        Returns:
            UpdateResult; has_update=False on dev mode, failure, or timeout
        """
        if self._future is not None:
            return await asyncio.shield(self._future)

        loop = asyncio.get_running_loop()
        self._future = loop.create_future()

        if not self.packaged:
            self.logger.info("Development mode, skipping update check")
            self._settle(UpdateResult(has_update=False), "development")
            return self._future.result()

        if self.source_factory is None:
            self.logger.info("No update feed configured, skipping update check")
            self._settle(UpdateResult(has_update=False), "disabled")
            return self._future.result()

        try:
            self._source = self.source_factory()
        except Exception as e:
            self.logger.error(f"Failed to load update source: {e}", exc_info=True)
            self._settle(UpdateResult(has_update=False), "load-failure")
            return self._future.result()

        self._on_progress = on_progress
        self._queue = asyncio.Queue()
        self._pump_task = asyncio.create_task(self._pump(self._queue))
        self._check_task = asyncio.create_task(self._source.check(self._queue.put_nowait))
        self._check_task.add_done_callback(self._on_check_done)
        self._timer = loop.call_later(self.timeout, self._on_timeout)

        try:
            return await asyncio.shield(self._future)
        finally:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _settle(self, result: UpdateResult, reason: str) -> bool:
        """Resolve the run result if nothing has yet.

        Returns:
            True if this call won, False if the result was already settled
        """
        if self._future is None or self._future.done():
            self.logger.debug(f"Update result already settled, ignoring {reason}")
            return False

        self.result = result
        self.resolved_by = reason
        self._future.set_result(result)
        self.logger.info(
            f"Update run resolved by {reason}: has_update={result.has_update}, "
            f"version={result.version}"
        )
        return True

    def _on_timeout(self) -> None:
        if self._settle(UpdateResult(has_update=False), "timeout"):
            self.logger.warning(
                f"Update check timed out after {self.timeout}s "
                f"(last phase: {self.state.phase.value}), continuing without update"
            )

    def _on_check_done(self, task: asyncio.Task) -> None:
        """Turn a crashed source check into an errored event."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        self.logger.error(f"Update source check crashed: {exc}", exc_info=exc)
        if self._queue is not None:
            self._queue.put_nowait(UpdateEvent.errored(str(exc) or type(exc).__name__))

    async def _pump(self, queue: asyncio.Queue) -> None:
        while True:
            event = await queue.get()
            self.handle_event(event)

    def handle_event(self, event: UpdateEvent) -> None:
        """Single receive point for every update source event."""
        late = self.resolved
        self.state = event

        if late:
            self.logger.info(f"Update event after resolution: {event.phase.value}")
        elif event.phase == UpdatePhase.ERRORED:
            self.logger.error(f"Update source error: {event.message}")
        elif event.phase != UpdatePhase.DOWNLOADING:
            self.logger.info(f"Update event: {event.phase.value} {event.version or ''}".rstrip())

        if event.phase == UpdatePhase.DOWNLOADED and event.version:
            self.pending_version = event.version
            for callback in list(self._downloaded_listeners):
                try:
                    callback(event.version)
                except Exception as e:
                    self.logger.error(f"Downloaded listener failed: {e}", exc_info=True)

        if not late and self._on_progress is not None:
            percent, label, download = describe_event(event)
            try:
                self._on_progress(percent, label, download)
            except Exception as e:
                self.logger.error(f"Update progress callback failed: {e}", exc_info=True)

        if event.is_terminal:
            if event.phase == UpdatePhase.DOWNLOADED:
                result = UpdateResult(has_update=True, version=event.version)
            else:
                result = UpdateResult(has_update=False)
            self._settle(result, event.phase.value)

    def install(self) -> bool:
        """Forward install-and-relaunch to the source, at most once.

        Returns:
            True if the request was forwarded
        """
        if self._source is None:
            return False
        if self.pending_version is None:
            self.logger.warning("Install requested with no downloaded update")
            return False
        if self._install_requested:
            return False

        self._install_requested = True
        self.logger.info(f"Installing update {self.pending_version}")
        try:
            launched = bool(self._source.quit_and_install())
        except Exception as e:
            self.logger.error(f"Install request failed: {e}", exc_info=True)
            launched = False
        if not launched:
            self._install_requested = False
        return launched

    async def close(self) -> None:
        """Cancel the timer, the source check and the receive loop."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        tasks = [t for t in (self._check_task, self._pump_task) if t is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._check_task = None
        self._pump_task = None
