"""
Splash layout

Single column: title band on top, overall progress bar, and a thinner
download bar underneath that is only drawn while an update downloads.
"""

from typing import NamedTuple, Optional

_PADDING = 24
_BAR_HEIGHT_RATIO = 0.08
_DOWNLOAD_BAR_RATIO = 0.4


class Rect(NamedTuple):
    x: int
    y: int
    w: int
    h: int


class SplashLayout:
    """Computes bar geometry for a splash window of the given size."""

    def __init__(self, width: int = 480, height: int = 280):
        self.width = width
        self.height = height

        self.bar_x = _PADDING
        self.bar_width = width - 2 * _PADDING
        self.bar_height = max(8, int(height * _BAR_HEIGHT_RATIO))
        self.bar_y = height // 2 + self.bar_height

        self.download_height = max(4, int(self.bar_height * _DOWNLOAD_BAR_RATIO))
        self.download_y = self.bar_y + self.bar_height + _PADDING // 2

        # Accent band the logo would sit on
        self.band = Rect(0, 0, width, height // 3)

    def progress_track(self) -> Rect:
        return Rect(self.bar_x, self.bar_y, self.bar_width, self.bar_height)

    def progress_fill(self, percent: float) -> Optional[Rect]:
        """Filled part of the main bar, or None when empty."""
        filled = int(self.bar_width * min(max(percent, 0), 100) / 100)
        if filled <= 0:
            return None
        return Rect(self.bar_x, self.bar_y, filled, self.bar_height)

    def download_track(self) -> Rect:
        return Rect(self.bar_x, self.download_y, self.bar_width, self.download_height)

    def download_fill(self, percent: float) -> Optional[Rect]:
        filled = int(self.bar_width * min(max(percent, 0), 100) / 100)
        if filled <= 0:
            return None
        return Rect(self.bar_x, self.download_y, filled, self.download_height)


def format_speed(bytes_per_second: float) -> str:
    """Compact transfer rate for the window title, e.g. '1.5 MB/s'."""
    value = float(bytes_per_second)
    for unit in ("B/s", "KB/s", "MB/s"):
        if value < 1024:
            return f"{value:.1f} {unit}" if unit != "B/s" else f"{int(value)} {unit}"
        value /= 1024
    return f"{value:.1f} GB/s"


def splash_title(snapshot: dict) -> str:
    """Window title text for a /splash snapshot."""
    progress = snapshot.get("progress") or {}
    text = progress.get("text") or "Starting..."
    title = f"{text} ({progress.get('percent', 0)}%)"
    download = snapshot.get("download")
    if download:
        title += f" - {format_speed(download.get('speed', 0))}"
    return title
