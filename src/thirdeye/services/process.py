"""Lifecycle management for the external monitoring agent process."""

import asyncio
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path
from typing import Callable, Optional

from thirdeye.config import ShellConfig
from thirdeye.models.process import ProcessEvent, ProcessEventKind
from thirdeye.models.status import AgentState

AGENT_BINARY = "the-third-eye.exe" if sys.platform == "win32" else "the-third-eye"

# Repository root in a development checkout: src/thirdeye/services -> root
_PROJECT_ROOT = Path(__file__).resolve().parents[3]


def resolve_agent_path(config: ShellConfig) -> Path:
    """Locate the agent executable for the current packaging mode.

    Args:
        config: Shell configuration (agent_path wins when set)

    Returns:
        Expected executable path (may not exist)
    """
    if config.agent_path is not None:
        return config.agent_path
    if config.packaged:
        return Path(sys.executable).resolve().parent / "resources" / "agent" / AGENT_BINARY
    return _PROJECT_ROOT / "build" / "Release" / AGENT_BINARY


class ProcessSupervisor:
    """Owns the agent subprocess: spawn, observe exit, terminate.

    Every state change goes through _apply() with a ProcessEvent, so
    listeners see each transition in order. The supervisor never restarts
    the agent on its own.
    """

    def __init__(self, config: ShellConfig):
        """Initialize process supervisor.

        Args:
            config: Shell configuration (port, interval, log level, paths)
        """
        self.logger = logging.getLogger("thirdeye.process")
        self.config = config
        self.state = AgentState.NOT_STARTED
        self.exit_code: Optional[int] = None
        self.process: Optional[asyncio.subprocess.Process] = None
        self._watch_task: Optional[asyncio.Task] = None
        self._listeners: list[Callable[[ProcessEvent], None]] = []

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    def add_listener(self, callback: Callable[[ProcessEvent], None]) -> None:
        self._listeners.append(callback)

    def build_command(self, agent_path: Path) -> list[str]:
        return [
            str(agent_path),
            "--port", str(self.config.agent_port),
            "--interval", str(self.config.agent_interval),
            "--log-level", self.config.agent_log_level,
        ]

    def _apply(self, event: ProcessEvent) -> None:
        """Apply one lifecycle event to the supervisor state."""
        if event.kind == ProcessEventKind.STARTING:
            self.state = AgentState.STARTING
        elif event.kind == ProcessEventKind.SPAWNED:
            self.state = AgentState.RUNNING
            self.exit_code = None
        elif event.kind == ProcessEventKind.SPAWN_FAILED:
            self.state = AgentState.FAILED
            self.process = None
        elif event.kind in (ProcessEventKind.EXITED, ProcessEventKind.KILLED):
            self.state = AgentState.STOPPED
            if event.exit_code is not None:
                self.exit_code = event.exit_code
            self.process = None

        self.logger.debug(f"Process event {event.kind.value} -> {self.state.value}")
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception as e:
                self.logger.error(f"Process listener failed: {e}", exc_info=True)

    async def start(self) -> AgentState:
        """Spawn the agent if its executable exists.

        Missing executable and spawn errors are logged and never raised.

        Returns:
            Resulting agent state
        """
        if self.process is not None:
            self.logger.warning(f"Agent already running (PID: {self.process.pid})")
            return self.state

        agent_path = resolve_agent_path(self.config)
        if not agent_path.exists():
            self.logger.warning(f"Agent executable not found: {agent_path}")
            return self.state

        command = self.build_command(agent_path)
        self._apply(ProcessEvent(kind=ProcessEventKind.STARTING))
        self.logger.info(f"Starting agent: {' '.join(command)}")

        try:
            self.process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                cwd=str(agent_path.parent),
            )
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to spawn agent: {e}")
            self._apply(ProcessEvent(kind=ProcessEventKind.SPAWN_FAILED, error=str(e)))
            return self.state

        self._apply(ProcessEvent(kind=ProcessEventKind.SPAWNED, pid=self.process.pid))
        self.logger.info(f"Agent started (PID: {self.process.pid})")
        self._watch_task = asyncio.create_task(self._watch(self.process))
        return self.state

    async def _watch(self, process: asyncio.subprocess.Process) -> None:
        exit_code = await process.wait()
        # stop() may have replaced or cleared the handle already
        if self.process is process:
            self.logger.warning(f"Agent exited with code {exit_code}")
            self._apply(
                ProcessEvent(
                    kind=ProcessEventKind.EXITED, pid=process.pid, exit_code=exit_code
                )
            )

    def _request_termination(self, pid: int) -> None:
        """Ask the OS to kill the agent (and its children on Windows).

        Raises:
            OSError: If the request could not be issued
        """
        if sys.platform == "win32":
            subprocess.Popen(
                ["taskkill", "/pid", str(pid), "/T", "/F"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        else:
            os.kill(pid, signal.SIGKILL)

    async def stop(self, timeout: float = 3.0) -> None:
        """Terminate the agent; no-op when nothing is tracked.

        Args:
            timeout: Seconds to wait for the process to exit after the kill
        """
        process = self.process
        if process is None:
            return

        pid = process.pid
        self.logger.info(f"Stopping agent (PID: {pid})")
        # The kill is reported once, as KILLED below
        if self._watch_task is not None:
            self._watch_task.cancel()
            self._watch_task = None

        try:
            self._request_termination(pid)
        except OSError as e:
            self.logger.warning(f"Termination request failed ({e}), sending kill")
            try:
                process.kill()
            except (OSError, ProcessLookupError) as kill_error:
                self.logger.warning(f"Kill failed: {kill_error}")

        exit_code = None
        try:
            exit_code = await asyncio.wait_for(process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            self.logger.error(f"Agent (PID: {pid}) did not exit within {timeout}s")
        except Exception as e:
            self.logger.warning(f"Error waiting for agent exit: {e}")

        self._apply(ProcessEvent(kind=ProcessEventKind.KILLED, pid=pid, exit_code=exit_code))
        self.logger.info("Agent stopped")
