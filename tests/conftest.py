"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from thirdeye.config import ShellConfig  # noqa: E402
from thirdeye.ui.bridge import UiBridge  # noqa: E402


@pytest.fixture
def shell_config(tmp_path):
    """ShellConfig with fast timings and an isolated data dir."""
    return ShellConfig(
        data_dir=tmp_path / "data",
        agent_path=tmp_path / "missing-agent",
        packaged=False,
        probe_budget=0.2,
        probe_attempt_timeout=0.05,
        probe_retry_delay=0.01,
        update_timeout=1.0,
        alert_interval=0.05,
        alert_request_timeout=0.05,
        splash_enabled=False,
    )


@pytest.fixture
def bridge():
    return UiBridge()


@pytest.fixture
def mock_agent_client():
    """AgentClient stand-in with async endpoints."""
    client = MagicMock()
    client.fetch_status = AsyncMock(return_value={"cpu_usage_percent": 3.5})
    client.fetch_alerts = AsyncMock()
    client.post_config = AsyncMock()
    client.test_connection = AsyncMock(return_value={"ok": True})
    client.aclose = AsyncMock()
    return client


def _make_alert(
    alert_type="cpu_high",
    timestamp="2024-01-01T00:00:00Z",
    message="CPU usage 95.0% above 90.0%",
    value=95,
    threshold=90,
    active=True,
):
    """Raw alert dict as the agent returns it."""
    return {
        "type": alert_type,
        "timestamp": timestamp,
        "message": message,
        "value": value,
        "threshold": threshold,
        "active": active,
    }


@pytest.fixture
def make_alert():
    return _make_alert
