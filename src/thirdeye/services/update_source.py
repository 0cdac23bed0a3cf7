"""HTTP update feed: check, download, verify, install-and-relaunch."""

import logging
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, Optional

import aiofiles
import httpx
from pydantic import ValidationError

from thirdeye.errors import UpdateError
from thirdeye.models.update import UpdateEvent, UpdateManifest, is_newer
from thirdeye.utils.verification import verify_md5_or_raise

EmitFn = Callable[[UpdateEvent], None]


class HttpUpdateSource:
    """Checks <feed_url>/latest.json and downloads newer installers.

    Lifecycle events are pushed through the emit callback passed to check();
    the source itself keeps no listeners.
    """

    def __init__(
        self,
        feed_url: str,
        current_version: str,
        download_dir: Path,
        on_relaunch: Optional[Callable[[], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize update source.

        Args:
            feed_url: Base URL of the update feed
            current_version: Version of the running shell
            download_dir: Directory for downloaded installers
            on_relaunch: Called after the installer is launched, to quit the app
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.logger = logging.getLogger("thirdeye.update_source")
        self.feed_url = feed_url.rstrip("/")
        self.current_version = current_version
        self.download_dir = Path(download_dir)
        self.on_relaunch = on_relaunch
        self.transport = transport
        self.chunk_size = 64 * 1024
        self.downloaded_path: Optional[Path] = None
        self.downloaded_version: Optional[str] = None

    async def check(self, emit: EmitFn) -> None:
        """Run one check and, if newer, download. Never raises.

        Args:
            emit: Receives every lifecycle event in order
        """
        emit(UpdateEvent.checking())
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as client:
                manifest = await self._fetch_manifest(client)

                if not is_newer(manifest.version, self.current_version):
                    self.logger.info(
                        f"No update: feed has {manifest.version}, running {self.current_version}"
                    )
                    emit(UpdateEvent.not_available())
                    return

                self.logger.info(f"Update available: {manifest.version}")
                emit(UpdateEvent.available(manifest.version))

                target_path = await self._download(client, manifest, emit)

            verify_md5_or_raise(target_path, manifest.md5)
            self.downloaded_path = target_path
            self.downloaded_version = manifest.version
            emit(UpdateEvent.downloaded(manifest.version))

        except (httpx.HTTPError, ValidationError, ValueError, UpdateError, OSError) as e:
            self.logger.error(f"Update check failed: {e}", exc_info=True)
            emit(UpdateEvent.errored(str(e) or type(e).__name__))

    async def _fetch_manifest(self, client: httpx.AsyncClient) -> UpdateManifest:
        response = await client.get(f"{self.feed_url}/latest.json")
        response.raise_for_status()
        return UpdateManifest.model_validate(response.json())

    async def _download(
        self,
        client: httpx.AsyncClient,
        manifest: UpdateManifest,
        emit: EmitFn,
    ) -> Path:
        """Stream the installer to disk, emitting downloading events.

        Returns:
            Path to the downloaded (unverified) installer
        """
        self.download_dir.mkdir(parents=True, exist_ok=True)
        target_path = self.download_dir / manifest.file_name
        self.logger.info(f"Downloading {manifest.url} -> {target_path}")

        started = time.monotonic()
        transferred = 0
        async with client.stream("GET", manifest.url) as response:
            response.raise_for_status()
            total = int(response.headers.get("Content-Length") or manifest.size)

            async with aiofiles.open(target_path, "wb") as f:
                last_percent = -1
                async for chunk in response.aiter_bytes(chunk_size=self.chunk_size):
                    await f.write(chunk)
                    transferred += len(chunk)

                    # One event per whole percent
                    percent = int(transferred * 100 / total) if total else 0
                    if percent > last_percent:
                        last_percent = percent
                        elapsed = max(time.monotonic() - started, 1e-6)
                        emit(
                            UpdateEvent.downloading(
                                percent=float(percent),
                                transferred=transferred,
                                total=total,
                                speed=transferred / elapsed,
                            )
                        )

        if transferred != manifest.size:
            target_path.unlink(missing_ok=True)
            raise UpdateError(
                f"SIZE_MISMATCH: expected {manifest.size} bytes, got {transferred}"
            )

        self.logger.info(f"Downloaded {transferred} bytes")
        return target_path

    def quit_and_install(self) -> bool:
        """Launch the downloaded installer detached and ask the app to quit.

        Returns:
            True if the installer was launched
        """
        if self.downloaded_path is None:
            self.logger.warning("Install requested but nothing was downloaded")
            return False

        kwargs: dict = {}
        if sys.platform == "win32":
            kwargs["creationflags"] = (
                subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
            )
        else:
            kwargs["start_new_session"] = True

        try:
            subprocess.Popen(
                [str(self.downloaded_path)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                **kwargs,
            )
        except OSError as e:
            self.logger.error(f"Failed to launch installer: {e}")
            return False

        self.logger.info(f"Installer {self.downloaded_version} launched, relaunching")
        if self.on_relaunch is not None:
            self.on_relaunch()
        return True
