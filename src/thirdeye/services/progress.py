"""Unified startup progress for the splash surface."""

import logging
from typing import NamedTuple, Optional

from thirdeye.models.progress import DownloadProgress, ProgressState
from thirdeye.ui.bridge import UiBridge


class ProgressRange(NamedTuple):
    """Slice of the global 0-100 scale reserved for one phase."""

    start: int
    end: int

    def map(self, fraction: float) -> int:
        fraction = min(max(fraction, 0.0), 1.0)
        return round(self.start + (self.end - self.start) * fraction)


READINESS_RANGE = ProgressRange(15, 70)
UPDATE_RANGE = ProgressRange(45, 92)


class ProgressReporter:
    """Folds each phase's progress into one non-decreasing percent stream.

    Phase ranges overlap (readiness ends at 70, updates start at 45), so a
    lower value reported by a later phase holds the bar where it is.
    """

    def __init__(self, bridge: UiBridge, version: str = ""):
        self.logger = logging.getLogger("thirdeye.progress")
        self.bridge = bridge
        self.version = version
        self._percent = 0
        self._text = ""

    @property
    def percent(self) -> int:
        return self._percent

    @property
    def text(self) -> str:
        return self._text

    def report(self, percent: float, text: Optional[str] = None) -> int:
        """Publish splash-progress.

        Args:
            percent: Requested percent on the global scale
            text: New label, or None to keep the current one

        Returns:
            The percent actually published
        """
        value = int(min(max(percent, 0), 100))
        self._percent = max(self._percent, value)
        if text is not None:
            self._text = text

        self.bridge.set_splash_progress(
            ProgressState(percent=self._percent, text=self._text, version=self.version)
        )
        self.logger.debug(f"Splash progress {self._percent}%: {self._text}")
        return self._percent

    def report_download(self, download: Optional[DownloadProgress]) -> None:
        """Publish splash-download, or clear it with None."""
        self.bridge.set_splash_download(download)
