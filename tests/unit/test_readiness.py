"""Unit tests for ReadinessProbe."""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from thirdeye.errors import AgentApiError
from thirdeye.services.readiness import ReadinessProbe


@pytest.mark.unit
class TestReadinessProbe:
    """Test ReadinessProbe in isolation."""

    @pytest.mark.asyncio
    async def test_ready_on_first_success(self, mock_agent_client):
        """A responding agent short-circuits on the first attempt."""
        # Arrange
        probe = ReadinessProbe(mock_agent_client, attempt_timeout=0.05, retry_delay=0.01)
        progress = []

        # Act
        result = await probe.probe(timeout_budget=1.0, on_progress=progress.append)

        # Assert
        assert result.ready is True
        assert result.attempts == 1
        assert progress == [15]
        mock_agent_client.fetch_status.assert_awaited_once_with(timeout=0.05)

    @pytest.mark.asyncio
    async def test_ready_after_retries(self, mock_agent_client):
        """Failures are retried until the agent answers."""
        mock_agent_client.fetch_status.side_effect = [
            AgentApiError("ConnectError"),
            AgentApiError("ConnectError"),
            {"cpu_usage_percent": 1.0},
        ]
        probe = ReadinessProbe(mock_agent_client, attempt_timeout=0.05, retry_delay=0.01)

        result = await probe.probe(timeout_budget=1.0)

        assert result.ready is True
        assert result.attempts == 3

    @pytest.mark.asyncio
    async def test_never_ready_returns_false_within_bound(self, mock_agent_client):
        """An absent agent yields ready=False once, within budget + slack."""
        # Arrange
        mock_agent_client.fetch_status.side_effect = AgentApiError("ConnectError")
        budget, attempt_timeout, retry_delay = 0.2, 0.05, 0.02
        probe = ReadinessProbe(
            mock_agent_client, attempt_timeout=attempt_timeout, retry_delay=retry_delay
        )

        # Act
        started = time.monotonic()
        result = await probe.probe(timeout_budget=budget)
        elapsed = time.monotonic() - started

        # Assert
        assert result.ready is False
        assert result.elapsed > budget
        assert elapsed < budget + attempt_timeout + retry_delay + 0.1

    @pytest.mark.asyncio
    async def test_hanging_agent_bounded_by_attempt_timeout(self, mock_agent_client):
        """A status call that never completes is cut off per attempt."""
        # Arrange
        async def hang(timeout=None):
            await asyncio.sleep(10)

        mock_agent_client.fetch_status = AsyncMock(side_effect=hang)
        budget, attempt_timeout, retry_delay = 0.15, 0.05, 0.02
        probe = ReadinessProbe(
            mock_agent_client, attempt_timeout=attempt_timeout, retry_delay=retry_delay
        )

        # Act
        started = time.monotonic()
        result = await probe.probe(timeout_budget=budget)
        elapsed = time.monotonic() - started

        # Assert
        assert result.ready is False
        assert elapsed < budget + attempt_timeout + retry_delay + 0.1

    @pytest.mark.asyncio
    async def test_progress_stays_in_readiness_range(self, mock_agent_client):
        """Progress is non-decreasing and within 15..70."""
        mock_agent_client.fetch_status.side_effect = AgentApiError("ConnectError")
        probe = ReadinessProbe(mock_agent_client, attempt_timeout=0.02, retry_delay=0.02)
        progress = []

        await probe.probe(timeout_budget=0.15, on_progress=progress.append)

        assert len(progress) >= 2
        assert progress[0] == 15
        assert all(15 <= p <= 70 for p in progress)
        assert progress == sorted(progress)

    @pytest.mark.asyncio
    async def test_zero_budget_makes_single_pass(self, mock_agent_client):
        """A zero budget reports the end of the range and gives up quickly."""
        mock_agent_client.fetch_status.side_effect = AgentApiError("ConnectError")
        probe = ReadinessProbe(mock_agent_client, attempt_timeout=0.02, retry_delay=0.01)
        progress = []

        result = await probe.probe(timeout_budget=0, on_progress=progress.append)

        assert result.ready is False
        assert progress[0] == 70
        assert result.attempts <= 2
