"""Startup pipeline and teardown for the desktop shell."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from thirdeye import __version__
from thirdeye.config import ShellConfig
from thirdeye.gui.launcher import SplashLauncher
from thirdeye.models.progress import DownloadProgress, ReadinessResult
from thirdeye.models.status import AgentState
from thirdeye.models.update import UpdateResult
from thirdeye.services.agent_client import AgentClient
from thirdeye.services.alerts import AlertNotifier
from thirdeye.services.notifications import DesktopNotifier
from thirdeye.services.preferences import PreferenceStore
from thirdeye.services.process import ProcessSupervisor
from thirdeye.services.progress import ProgressReporter
from thirdeye.services.readiness import ReadinessProbe
from thirdeye.services.update import UpdateCoordinator
from thirdeye.services.update_source import HttpUpdateSource
from thirdeye.ui.bridge import UPDATE_READY, MainWindow, UiBridge


class BootstrapStep(str, Enum):
    """Startup steps, executed strictly in this order."""

    SHOW_SPLASH = "showSplash"
    START_AGENT = "startAgent"
    PROBE_READINESS = "probeReadiness"
    CHECK_UPDATE = "checkUpdate"
    REVEAL_MAIN_WINDOW = "revealMainWindow"
    START_ALERT_NOTIFIER = "startAlertNotifier"
    CLOSE_SPLASH = "closeSplash"


class Orchestrator:
    """Owns every shell component and sequences startup and shutdown.

    Handlers (bridge routes, notification clicks, ready callbacks) receive
    this object explicitly instead of reaching for module-level singletons.
    """

    def __init__(
        self,
        config: ShellConfig,
        *,
        bridge: Optional[UiBridge] = None,
        client: Optional[AgentClient] = None,
        supervisor: Optional[ProcessSupervisor] = None,
        probe: Optional[ReadinessProbe] = None,
        updates: Optional[UpdateCoordinator] = None,
        notifier: Optional[DesktopNotifier] = None,
        preferences: Optional[PreferenceStore] = None,
        splash: Optional[SplashLauncher] = None,
    ):
        self.logger = logging.getLogger("thirdeye.orchestrator")
        self.config = config
        self.version = __version__

        self.bridge = bridge or UiBridge()
        self.window = MainWindow(self.bridge)
        self.progress = ProgressReporter(self.bridge, self.version)
        self.client = client or AgentClient(config.agent_base_url)
        self.supervisor = supervisor or ProcessSupervisor(config)
        self.probe = probe or ReadinessProbe(
            self.client,
            attempt_timeout=config.probe_attempt_timeout,
            retry_delay=config.probe_retry_delay,
        )
        self.updates = updates or UpdateCoordinator(
            self._build_update_source if config.update_feed_url else None,
            packaged=config.packaged,
            timeout=config.update_timeout,
        )
        self.preferences = preferences or PreferenceStore(config.settings_path)
        self.notifier = notifier or DesktopNotifier(self.bridge)
        self.alerts = AlertNotifier(
            self.client,
            self.notifier,
            self.preferences,
            on_click=self.window.focus,
            interval=config.alert_interval,
            request_timeout=config.alert_request_timeout,
            cache_capacity=config.alert_cache_capacity,
        )
        self.splash = splash or SplashLauncher(config.bridge_url, enabled=config.splash_enabled)

        self.readiness: Optional[ReadinessResult] = None
        self.update_result: Optional[UpdateResult] = None
        self.completed_steps: list[BootstrapStep] = []
        self.failed_steps: list[BootstrapStep] = []
        self.exit_requested = asyncio.Event()
        self._delivered_update: Optional[str] = None
        self._shutdown_done = False

        self.window.on_ready(self.deliver_pending_update)
        self.updates.on_downloaded(lambda _version: self.deliver_pending_update())

    def _build_update_source(self) -> HttpUpdateSource:
        return HttpUpdateSource(
            self.config.update_feed_url,
            current_version=self.version,
            download_dir=self.config.updates_dir,
            on_relaunch=self.request_exit,
        )

    def request_exit(self) -> None:
        """Ask the application to quit; main() awaits exit_requested."""
        self.logger.info("Exit requested")
        self.exit_requested.set()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def bootstrap(self) -> None:
        """Run every startup step in order; no step failure is fatal."""
        steps: list[tuple[BootstrapStep, Callable[[], Awaitable[None]]]] = [
            (BootstrapStep.SHOW_SPLASH, self._show_splash),
            (BootstrapStep.START_AGENT, self._start_agent),
            (BootstrapStep.PROBE_READINESS, self._probe_readiness),
            (BootstrapStep.CHECK_UPDATE, self._check_update),
            (BootstrapStep.REVEAL_MAIN_WINDOW, self._reveal_main_window),
            (BootstrapStep.START_ALERT_NOTIFIER, self._start_alert_notifier),
            (BootstrapStep.CLOSE_SPLASH, self._close_splash),
        ]
        for step, run in steps:
            self.logger.debug(f"Bootstrap step: {step.value}")
            try:
                await run()
            except Exception as e:
                self.logger.error(f"Bootstrap step {step.value} failed: {e}", exc_info=True)
                self.failed_steps.append(step)
            self.completed_steps.append(step)
        self.logger.info("Bootstrap complete")

    async def _show_splash(self) -> None:
        self.progress.report(5, "Starting...")
        await asyncio.to_thread(self.splash.start)

    async def _start_agent(self) -> None:
        self.progress.report(10, "Starting agent...")
        state = await self.supervisor.start()
        if state == AgentState.NOT_STARTED:
            self.logger.warning("Agent executable missing, continuing without it")
        elif state == AgentState.FAILED:
            self.logger.warning("Agent failed to spawn, continuing without it")

    async def _probe_readiness(self) -> None:
        self.progress.report(15, "Waiting for agent...")
        self.readiness = await self.probe.probe(
            self.config.probe_budget, on_progress=self.progress.report
        )
        if self.readiness.ready:
            self.progress.report(70, "Agent connected")
        else:
            self.progress.report(70, "Agent not detected")

    def _on_update_progress(
        self, percent: int, label: str, download: Optional[DownloadProgress]
    ) -> None:
        self.progress.report(percent, label)
        if download is not None or self.bridge.splash.download is not None:
            self.progress.report_download(download)

    async def _check_update(self) -> None:
        self.update_result = await self.updates.run(self._on_update_progress)
        if self.bridge.splash.download is not None:
            self.progress.report_download(None)

    async def _reveal_main_window(self) -> None:
        self.progress.report(95, "Loading dashboard...")
        self.window.reveal()

    async def _start_alert_notifier(self) -> None:
        self.alerts.start()

    async def _close_splash(self) -> None:
        self.progress.report(100, "Ready")
        self.bridge.close_splash()
        await asyncio.to_thread(self.splash.stop)

    # ------------------------------------------------------------------
    # UI handlers
    # ------------------------------------------------------------------

    def deliver_pending_update(self) -> bool:
        """Send update-ready to the main UI once it is ready.

        Returns:
            True if update-ready was emitted by this call
        """
        version = self.updates.pending_version
        if version is None or not self.window.ready:
            return False
        if self._delivered_update == version:
            return False

        self._delivered_update = version
        self.bridge.emit(UPDATE_READY, version)
        self.logger.info(f"Notified UI of update {version}")
        return True

    def install_update(self) -> bool:
        return self.updates.install()

    def set_notifications_enabled(self, enabled: bool) -> None:
        self.preferences.set_notifications_enabled(enabled)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def shutdown(self) -> None:
        """Stop the alert poller, then the agent; runs once."""
        if self._shutdown_done:
            return
        self._shutdown_done = True
        self.logger.info("Shutting down...")

        try:
            await self.alerts.stop()
        except Exception as e:
            self.logger.error(f"Failed to stop alert notifier: {e}", exc_info=True)

        try:
            await self.supervisor.stop()
        except Exception as e:
            self.logger.error(f"Failed to stop agent: {e}", exc_info=True)

        await self.updates.close()
        await self.client.aclose()
        self.bridge.close_splash()
        if self.splash.is_running():
            await asyncio.to_thread(self.splash.stop, 0.5)
        self.logger.info("Shutdown complete")
