"""Unit tests for AgentClient."""

import json

import httpx
import pytest

from thirdeye.errors import AgentApiError
from thirdeye.models.agent import AgentConfigUpdate
from thirdeye.services.agent_client import AgentClient


def _client(handler):
    return AgentClient("http://127.0.0.1:9100", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestAgentClient:
    """Test AgentClient against httpx.MockTransport."""

    @pytest.mark.asyncio
    async def test_fetch_status(self):
        def handler(request):
            assert request.url.path == "/api/status"
            return httpx.Response(200, json={"cpu_usage_percent": 12.5})

        client = _client(handler)

        status = await client.fetch_status()

        assert status == {"cpu_usage_percent": 12.5}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_2xx_raises_agent_api_error(self):
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(AgentApiError, match="HTTP 500"):
            await client.fetch_status()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_error_raises_agent_api_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)

        with pytest.raises(AgentApiError, match="ConnectError"):
            await client.fetch_status()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json_raises_agent_api_error(self):
        client = _client(lambda request: httpx.Response(200, content=b"not json"))

        with pytest.raises(AgentApiError, match="Invalid JSON"):
            await client.fetch_status()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_logs_passes_level_and_limit(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={"logs": [{"level": "ERROR", "message": "x"}]})

        client = _client(handler)

        logs = await client.fetch_logs(level="ERROR", limit=100)

        assert seen == {"level": "ERROR", "limit": "100"}
        assert logs == [{"level": "ERROR", "message": "x"}]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_logs_without_level(self):
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={})

        client = _client(handler)

        logs = await client.fetch_logs()

        assert "level" not in seen
        assert logs == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_alerts_parses_response(self):
        body = {
            "active": [
                {
                    "type": "memory_high",
                    "message": "Memory 92%",
                    "timestamp": "2024-01-01T00:00:00Z",
                    "value": 92,
                    "threshold": 90,
                    "active": True,
                }
            ],
            "history": [],
        }
        client = _client(lambda request: httpx.Response(200, json=body))

        alerts = await client.fetch_alerts(timeout=1.0)

        assert len(alerts.active) == 1
        assert alerts.active[0].key == ("memory_high", "2024-01-01T00:00:00Z")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_alerts_malformed_body(self):
        client = _client(lambda request: httpx.Response(200, json={"active": [{"type": 1}]}))

        with pytest.raises(AgentApiError, match="Malformed"):
            await client.fetch_alerts()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_post_config_omits_unset_thresholds(self):
        sent = {}

        def handler(request):
            sent.update(json.loads(request.content))
            return httpx.Response(200, json={"applied": sent})

        client = _client(handler)

        result = await client.post_config(AgentConfigUpdate(interval=5, cpu_threshold=80))

        assert sent == {"interval": 5, "log_level": "info", "cpu_threshold": 80.0}
        assert result["applied"]["interval"] == 5
        await client.aclose()

    @pytest.mark.asyncio
    async def test_post_config_rejected(self):
        client = _client(lambda request: httpx.Response(400, json={"error": "bad interval"}))

        with pytest.raises(AgentApiError, match="HTTP 400"):
            await client.post_config(AgentConfigUpdate())
        await client.aclose()

    @pytest.mark.asyncio
    async def test_test_connection_never_raises(self):
        ok = _client(lambda request: httpx.Response(200, json={}))
        down = _client(lambda request: httpx.Response(503))

        assert await ok.test_connection() == {"ok": True}
        result = await down.test_connection()
        assert result["ok"] is False
        assert "503" in result["error"]

        await ok.aclose()
        await down.aclose()

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self):
        client = _client(lambda request: httpx.Response(200, json={}))
        await client.fetch_status()

        await client.aclose()
        await client.aclose()

        # A closed client reconnects lazily
        assert await client.fetch_status() == {}
        await client.aclose()
