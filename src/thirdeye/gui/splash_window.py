"""
Splash window

Small borderless SDL window shown while the shell bootstraps. Polls the
bridge's /api/v1.0/splash endpoint and draws the overall progress bar plus
a download bar; the step label is shown in the window title.
"""

import sys
import time
from typing import Any, Dict, Optional

import httpx
import sdl2
import sdl2.ext

from .layout import Rect, SplashLayout, splash_title

_BG_COLOR = sdl2.ext.Color(10, 10, 15)
_BAND_COLOR = sdl2.ext.Color(22, 22, 34)
_TRACK_COLOR = sdl2.ext.Color(51, 51, 51)
_FILL_COLOR = sdl2.ext.Color(99, 102, 241)
_DOWNLOAD_COLOR = sdl2.ext.Color(40, 167, 69)

# Give up if the bridge has been unreachable this long
_BRIDGE_LOST_SECONDS = 10.0


class SplashWindow:
    """Polls splash state and renders it until the shell closes the splash."""

    def __init__(self, bridge_url: str = "http://127.0.0.1:9110", width: int = 480, height: int = 280):
        self.bridge_url = bridge_url.rstrip("/")
        self.layout = SplashLayout(width, height)
        self.running = False
        self.window: Optional[sdl2.SDL_Window] = None
        self._title = ""

        if sdl2.SDL_Init(sdl2.SDL_INIT_VIDEO) != 0:
            error = sdl2.SDL_GetError()
            raise RuntimeError(f"SDL_Init failed: {error.decode('utf-8')}")

    def create_window(self):
        self.window = sdl2.SDL_CreateWindow(
            b"The Third Eye",
            sdl2.SDL_WINDOWPOS_CENTERED,
            sdl2.SDL_WINDOWPOS_CENTERED,
            self.layout.width,
            self.layout.height,
            sdl2.SDL_WINDOW_SHOWN | sdl2.SDL_WINDOW_BORDERLESS | sdl2.SDL_WINDOW_ALWAYS_ON_TOP,
        )
        if not self.window:
            error = sdl2.SDL_GetError()
            raise RuntimeError(f"Failed to create window: {error.decode('utf-8')}")

    def fetch_snapshot(self) -> Optional[Dict[str, Any]]:
        """GET /api/v1.0/splash; None when the bridge is unreachable."""
        try:
            response = httpx.get(f"{self.bridge_url}/api/v1.0/splash", timeout=1.0)
            response.raise_for_status()
            return response.json().get("data")
        except (httpx.HTTPError, ValueError):
            return None

    def _fill(self, surface, color, rect: Optional[Rect]):
        if rect is not None:
            sdl2.ext.fill(surface, color, sdl2.SDL_Rect(*rect))

    def render(self, snapshot: Dict[str, Any]):
        surface = sdl2.SDL_GetWindowSurface(self.window)
        if not surface:
            return

        sdl2.ext.fill(surface, _BG_COLOR)
        self._fill(surface, _BAND_COLOR, self.layout.band)

        progress = snapshot.get("progress") or {}
        self._fill(surface, _TRACK_COLOR, self.layout.progress_track())
        self._fill(surface, _FILL_COLOR, self.layout.progress_fill(progress.get("percent", 0)))

        download = snapshot.get("download")
        if download:
            self._fill(surface, _TRACK_COLOR, self.layout.download_track())
            self._fill(surface, _DOWNLOAD_COLOR, self.layout.download_fill(download.get("percent", 0)))

        title = splash_title(snapshot)
        if title != self._title:
            sdl2.SDL_SetWindowTitle(self.window, title.encode("utf-8"))
            self._title = title

        sdl2.SDL_UpdateWindowSurface(self.window)

    def run(self):
        self.running = True
        last_poll = 0.0
        last_seen = time.time()
        snapshot: Dict[str, Any] = {"progress": {"percent": 0, "text": "Starting..."}}

        while self.running:
            event = sdl2.SDL_Event()
            while sdl2.SDL_PollEvent(event) != 0:
                if event.type == sdl2.SDL_QUIT:
                    self.running = False

            now = time.time()
            if now - last_poll >= 0.1:
                last_poll = now
                data = self.fetch_snapshot()
                if data is not None:
                    snapshot = data
                    last_seen = now
                    if data.get("closed"):
                        break
                elif now - last_seen > _BRIDGE_LOST_SECONDS:
                    break

            self.render(snapshot)
            sdl2.SDL_Delay(30)

        self.running = False

    def cleanup(self):
        if self.window:
            sdl2.SDL_DestroyWindow(self.window)
            self.window = None
        sdl2.SDL_Quit()


def main():
    """Splash subprocess entry point: splash_window [bridge_url]."""
    bridge_url = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:9110"
    window = None
    try:
        window = SplashWindow(bridge_url)
        window.create_window()
        window.run()
    except Exception as e:
        print(f"Splash error: {e}", file=sys.stderr)
    finally:
        if window:
            window.cleanup()


if __name__ == "__main__":
    main()
