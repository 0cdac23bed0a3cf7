"""Tests for the UI bridge API routes (routes.py + main.py)."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from thirdeye import __version__
from thirdeye.errors import AgentApiError
from thirdeye.main import create_app
from thirdeye.models.update import UpdateEvent
from thirdeye.services.notifications import DesktopNotifier, Notification
from thirdeye.services.orchestrator import Orchestrator
from thirdeye.services.update import UpdateCoordinator
from thirdeye.ui.bridge import UPDATE_READY, WINDOW_FOCUS


class InstallableSource:
    async def check(self, emit):
        emit(UpdateEvent.downloaded("1.2.3"))

    def quit_and_install(self):
        return True


# -----------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------

@pytest.fixture
def orchestrator(shell_config, bridge, mock_agent_client):
    return Orchestrator(
        shell_config,
        bridge=bridge,
        client=mock_agent_client,
        notifier=DesktopNotifier(bridge, use_os=False),
    )


@pytest.fixture
def client(orchestrator):
    return TestClient(create_app(orchestrator))


# -----------------------------------------------------------------------
# Status / splash / events
# -----------------------------------------------------------------------

@pytest.mark.unit
class TestStatusRoutes:
    """Test read-only endpoints."""

    def test_root_health_check(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "service": "thirdeye-shell",
            "version": __version__,
        }

    def test_status(self, client):
        response = client.get("/api/v1.0/status")

        body = response.json()
        assert body["code"] == 200
        assert body["data"]["agent_state"] == "notStarted"
        assert body["data"]["agent_pid"] is None
        assert body["data"]["window_ready"] is False

    def test_splash_snapshot(self, client, orchestrator):
        orchestrator.progress.report(42, "Waiting for agent...")

        data = client.get("/api/v1.0/splash").json()["data"]

        assert data["progress"]["percent"] == 42
        assert data["progress"]["text"] == "Waiting for agent..."
        assert data["download"] is None
        assert data["closed"] is False

    def test_events_after(self, client, bridge):
        first = bridge.emit("window-show")
        bridge.emit("window-focus")

        data = client.get(f"/api/v1.0/events?after={first.seq}").json()["data"]

        assert [e["channel"] for e in data["events"]] == ["window-focus"]
        assert data["last_seq"] == first.seq + 1


# -----------------------------------------------------------------------
# Window
# -----------------------------------------------------------------------

@pytest.mark.unit
class TestWindowRoutes:
    """Test window lifecycle endpoints."""

    def test_ready_first_time_only(self, client, orchestrator):
        first = client.post("/api/v1.0/window/ready").json()
        second = client.post("/api/v1.0/window/ready").json()

        assert first["data"] == {"first": True}
        assert second["data"] == {"first": False}
        assert orchestrator.window.ready is True

    def test_ready_delivers_pending_update(self, client, orchestrator, bridge):
        orchestrator.updates.pending_version = "1.2.3"

        client.post("/api/v1.0/window/ready")

        assert [e.payload for e in bridge.events_after(0, UPDATE_READY)] == ["1.2.3"]

    def test_focus(self, client, orchestrator, bridge):
        response = client.post("/api/v1.0/window/focus")

        assert response.json()["code"] == 200
        assert orchestrator.window.focused is True
        assert bridge.events_after(0, WINDOW_FOCUS)


# -----------------------------------------------------------------------
# Updates
# -----------------------------------------------------------------------

@pytest.mark.unit
class TestUpdateRoutes:
    """Test update endpoints."""

    def test_update_status_before_run(self, client):
        data = client.get("/api/v1.0/update").json()["data"]

        assert data == {
            "phase": "idle",
            "pending_version": None,
            "resolved": False,
            "has_update": None,
        }

    def test_install_without_source_is_silent(self, client):
        response = client.post("/api/v1.0/update/install")

        assert response.status_code == 200
        assert response.json()["data"] == {"launched": False}

    @pytest.mark.asyncio
    async def test_install_after_download(self, shell_config, bridge, mock_agent_client):
        # Arrange
        updates = UpdateCoordinator(InstallableSource, packaged=True, timeout=1.0)
        orch = Orchestrator(
            shell_config,
            bridge=bridge,
            client=mock_agent_client,
            updates=updates,
            notifier=DesktopNotifier(bridge, use_os=False),
        )
        await updates.run()
        client = TestClient(create_app(orch))

        # Act
        first = client.post("/api/v1.0/update/install").json()
        second = client.post("/api/v1.0/update/install").json()

        # Assert
        assert first["data"] == {"launched": True}
        assert second["data"] == {"launched": False}
        status = client.get("/api/v1.0/update").json()["data"]
        assert status["phase"] == "downloaded"
        assert status["pending_version"] == "1.2.3"
        assert status["has_update"] is True
        await updates.close()


# -----------------------------------------------------------------------
# Preferences / notifications
# -----------------------------------------------------------------------

@pytest.mark.unit
class TestPreferenceRoutes:
    """Test notification preference endpoints."""

    def test_default_enabled(self, client):
        data = client.get("/api/v1.0/preferences/notifications").json()["data"]

        assert data == {"enabled": True}

    def test_put_persists(self, client, shell_config):
        response = client.put("/api/v1.0/preferences/notifications", json={"enabled": False})

        assert response.json()["data"] == {"enabled": False}
        assert client.get("/api/v1.0/preferences/notifications").json()["data"] == {
            "enabled": False
        }
        assert shell_config.settings_path.exists()

    def test_put_save_failure(self, client, orchestrator):
        orchestrator.preferences.save = MagicMock(side_effect=OSError("read-only"))

        body = client.put(
            "/api/v1.0/preferences/notifications", json={"enabled": False}
        ).json()

        assert body["code"] == 500
        assert "read-only" in body["msg"]

    def test_put_invalid_body(self, client):
        response = client.put("/api/v1.0/preferences/notifications", json={})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_notification_click(self, client, orchestrator):
        clicked = MagicMock()
        notification_id = await orchestrator.notifier.notify(
            Notification(title="High CPU", message="95%", on_click=clicked)
        )

        response = client.post(f"/api/v1.0/notifications/{notification_id}/click")

        assert response.json()["code"] == 200
        clicked.assert_called_once()

    def test_notification_click_unknown(self, client):
        body = client.post("/api/v1.0/notifications/999/click").json()

        assert body["code"] == 404


# -----------------------------------------------------------------------
# Agent passthrough
# -----------------------------------------------------------------------

@pytest.mark.unit
class TestAgentRoutes:
    """Test agent config and connectivity endpoints."""

    def test_config_applied(self, client, mock_agent_client):
        mock_agent_client.post_config.return_value = {"interval": 5, "log_level": "debug"}

        body = client.post(
            "/api/v1.0/agent/config", json={"interval": 5, "log_level": "debug"}
        ).json()

        assert body["code"] == 200
        assert body["data"] == {"interval": 5, "log_level": "debug"}
        sent = mock_agent_client.post_config.call_args[0][0]
        assert sent.interval == 5

    def test_config_rejected_by_agent(self, client, mock_agent_client):
        mock_agent_client.post_config.side_effect = AgentApiError("HTTP 400")

        body = client.post("/api/v1.0/agent/config", json={"interval": 5}).json()

        assert body == {"code": 502, "msg": "Failed: HTTP 400"}

    def test_config_out_of_range(self, client, mock_agent_client):
        response = client.post("/api/v1.0/agent/config", json={"interval": 0})

        assert response.status_code == 422
        mock_agent_client.post_config.assert_not_called()

    def test_connection(self, client, mock_agent_client):
        mock_agent_client.test_connection = AsyncMock(
            return_value={"ok": False, "error": "ConnectError: refused"}
        )

        data = client.get("/api/v1.0/agent/connection").json()["data"]

        assert data == {"ok": False, "error": "ConnectError: refused"}
