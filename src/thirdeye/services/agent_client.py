"""HTTP client for the agent's local API."""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from thirdeye.errors import AgentApiError
from thirdeye.models.agent import AgentConfigUpdate
from thirdeye.models.alert import AlertsResponse


class AgentClient:
    """Typed wrapper around GET /api/status, /api/logs, /api/alerts and
    POST /api/config.

    Every failure (transport, non-2xx, undecodable body) surfaces as
    AgentApiError so callers handle one exception type.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:9100",
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize agent client.

        Args:
            base_url: Agent base URL (default: http://127.0.0.1:9100)
            timeout: Default per-request timeout in seconds
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.logger = logging.getLogger("thirdeye.agent_client")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> Any:
        client = self._get_client()
        try:
            response = await client.request(
                method, path, timeout=timeout or self.timeout, **kwargs
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise AgentApiError(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise AgentApiError(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise AgentApiError(f"Invalid JSON from {path}: {e}") from e

    async def fetch_status(self, timeout: Optional[float] = None) -> dict:
        """GET /api/status.

        Args:
            timeout: Per-request timeout override in seconds

        Returns:
            Status/metrics object as returned by the agent

        Raises:
            AgentApiError: If the agent is unreachable or answers non-2xx
        """
        return await self._request("GET", "/api/status", timeout=timeout)

    async def fetch_logs(self, level: str = "", limit: int = 500) -> list:
        """GET /api/logs?level=<LEVEL|''>&limit=<N>, returning the logs list."""
        params = {"limit": str(limit)}
        if level:
            params["level"] = level
        data = await self._request("GET", "/api/logs", params=params)
        return data.get("logs", []) if isinstance(data, dict) else []

    async def fetch_alerts(self, timeout: Optional[float] = None) -> AlertsResponse:
        """GET /api/alerts.

        Raises:
            AgentApiError: On transport failure or a malformed body
        """
        data = await self._request("GET", "/api/alerts", timeout=timeout)
        try:
            return AlertsResponse.model_validate(data)
        except ValidationError as e:
            raise AgentApiError(f"Malformed alerts response: {e}") from e

    async def post_config(self, config: AgentConfigUpdate) -> dict:
        """POST /api/config and return the applied-config echo.

        Raises:
            AgentApiError: If the agent rejects the config or is unreachable
        """
        payload = config.to_payload()
        self.logger.info(f"Applying agent config: {payload}")
        return await self._request("POST", "/api/config", json=payload)

    async def test_connection(self) -> dict:
        """Probe /api/status once; never raises."""
        try:
            await self.fetch_status()
            return {"ok": True}
        except AgentApiError as e:
            return {"ok": False, "error": str(e)}

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
