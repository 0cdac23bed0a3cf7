"""Shell configuration: defaults -> TTE_* environment variables."""

import os
import sys
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class ShellConfig(BaseModel):
    """Top-level configuration container.

    Agent flags mirror the agent's own TTE_* variables so the same environment
    configures both processes.
    """

    # Agent process
    agent_port: int = Field(9100, ge=1, le=65535, description="Agent HTTP port")
    agent_interval: int = Field(1, ge=1, le=60, description="Collection interval (s)")
    agent_log_level: Literal["info", "debug"] = Field("info")
    agent_path: Optional[Path] = Field(None, description="Explicit agent executable")
    packaged: bool = Field(
        default_factory=lambda: bool(getattr(sys, "frozen", False)),
        description="Running from a packaged build",
    )

    # Readiness
    probe_budget: float = Field(8.0, gt=0, description="Readiness budget (s)")
    probe_attempt_timeout: float = Field(0.5, gt=0)
    probe_retry_delay: float = Field(0.25, ge=0)

    # Updates
    update_feed_url: str = Field("", description="Update feed base URL, empty disables")
    update_timeout: float = Field(30.0, gt=0, description="Hard update timeout (s)")

    # Alerts
    alert_interval: float = Field(5.0, gt=0)
    alert_request_timeout: float = Field(3.0, gt=0)
    alert_cache_capacity: int = Field(500, gt=0)

    # Shell
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".thirdeye")
    bridge_host: str = Field("127.0.0.1")
    bridge_port: int = Field(9110, ge=1, le=65535)
    splash_enabled: bool = Field(True, description="Launch the SDL splash window")

    @property
    def agent_base_url(self) -> str:
        return f"http://127.0.0.1:{self.agent_port}"

    @property
    def bridge_url(self) -> str:
        return f"http://{self.bridge_host}:{self.bridge_port}"

    @property
    def settings_path(self) -> Path:
        return self.data_dir / "settings.json"

    @property
    def updates_dir(self) -> Path:
        return self.data_dir / "updates"

    @property
    def log_file(self) -> Path:
        return self.data_dir / "logs" / "shell.log"

    @classmethod
    def load(cls, environ: Optional[dict] = None) -> "ShellConfig":
        """Load config with layering: env vars -> defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Validated ShellConfig

        Raises:
            pydantic.ValidationError: If an override is out of range
        """
        env = os.environ if environ is None else environ
        overrides: dict = {}

        if "TTE_PORT" in env:
            overrides["agent_port"] = int(env["TTE_PORT"])
        if "TTE_INTERVAL" in env:
            overrides["agent_interval"] = int(env["TTE_INTERVAL"])
        if "TTE_LOG_LEVEL" in env:
            overrides["agent_log_level"] = env["TTE_LOG_LEVEL"].lower()
        if env.get("TTE_AGENT_PATH"):
            overrides["agent_path"] = Path(env["TTE_AGENT_PATH"])
        if "TTE_PACKAGED" in env:
            overrides["packaged"] = _env_flag(env["TTE_PACKAGED"])
        if "TTE_UPDATE_FEED_URL" in env:
            overrides["update_feed_url"] = env["TTE_UPDATE_FEED_URL"].rstrip("/")
        if env.get("TTE_DATA_DIR"):
            overrides["data_dir"] = Path(env["TTE_DATA_DIR"]).expanduser()
        if "TTE_BRIDGE_PORT" in env:
            overrides["bridge_port"] = int(env["TTE_BRIDGE_PORT"])
        if "TTE_SPLASH" in env:
            overrides["splash_enabled"] = _env_flag(env["TTE_SPLASH"])

        return cls(**overrides)
