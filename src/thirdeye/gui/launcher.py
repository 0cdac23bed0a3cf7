"""
Splash launcher

Runs the SDL splash window as a child process so a missing SDL library or
display never affects the shell itself.
"""

import logging
import subprocess
import sys
from typing import Optional

logger = logging.getLogger("thirdeye.splash")


class SplashLauncher:
    """Starts and stops the splash subprocess."""

    def __init__(self, bridge_url: str, enabled: bool = True):
        self.bridge_url = bridge_url
        self.enabled = enabled
        self.process: Optional[subprocess.Popen] = None

    def start(self) -> bool:
        """
        Launch the splash window.

        Returns:
            True if a splash process was started
        """
        if not self.enabled:
            logger.debug("Splash disabled")
            return False
        if self.process is not None:
            logger.warning("Splash already running")
            return False

        try:
            self.process = subprocess.Popen(
                [sys.executable, "-m", "thirdeye.gui.splash_window", self.bridge_url],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error(f"Failed to start splash: {e}")
            self.process = None
            return False

        logger.info(f"Splash started (PID: {self.process.pid})")
        return True

    def stop(self, timeout: float = 2.0) -> None:
        """
        Wait for the splash to exit on its own, then terminate it.

        The splash closes itself once the bridge reports closed=True.
        """
        if self.process is None:
            return

        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Splash did not exit, terminating")
            self.process.terminate()
            try:
                self.process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()

        self.process = None

    def is_running(self) -> bool:
        if self.process is None:
            return False
        return self.process.poll() is None
