"""Bounded readiness polling against the agent's status endpoint."""

import asyncio
import logging
from typing import Callable, Optional

from thirdeye.errors import AgentApiError
from thirdeye.models.progress import ReadinessResult
from thirdeye.services.agent_client import AgentClient
from thirdeye.services.progress import READINESS_RANGE, ProgressRange


class ReadinessProbe:
    """Polls GET /api/status until it answers or the budget runs out.

    Worst case returns after budget + attempt_timeout + retry_delay.
    """

    def __init__(
        self,
        client: AgentClient,
        attempt_timeout: float = 0.5,
        retry_delay: float = 0.25,
        progress_range: ProgressRange = READINESS_RANGE,
    ):
        self.logger = logging.getLogger("thirdeye.readiness")
        self.client = client
        self.attempt_timeout = attempt_timeout
        self.retry_delay = retry_delay
        self.progress_range = progress_range

    async def probe(
        self,
        timeout_budget: float = 8.0,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> ReadinessResult:
        """Wait for the agent to answer a status request.

        Args:
            timeout_budget: Total seconds to keep retrying
            on_progress: Called before each attempt with a percent in the
                readiness range of the global scale

        Returns:
            ReadinessResult; ready=False once the budget is exhausted
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        attempts = 0

        while True:
            elapsed = loop.time() - started
            if on_progress is not None:
                fraction = min(elapsed / timeout_budget, 1.0) if timeout_budget > 0 else 1.0
                on_progress(self.progress_range.map(fraction))

            attempts += 1
            try:
                await asyncio.wait_for(
                    self.client.fetch_status(timeout=self.attempt_timeout),
                    timeout=self.attempt_timeout,
                )
                elapsed = loop.time() - started
                self.logger.info(
                    f"Agent ready after {elapsed:.2f}s ({attempts} attempt(s))"
                )
                return ReadinessResult(ready=True, elapsed=elapsed, attempts=attempts)
            except (AgentApiError, asyncio.TimeoutError) as e:
                self.logger.debug(f"Readiness attempt {attempts} failed: {e}")

            elapsed = loop.time() - started
            if elapsed > timeout_budget:
                self.logger.warning(
                    f"Agent not ready after {elapsed:.2f}s ({attempts} attempt(s))"
                )
                return ReadinessResult(ready=False, elapsed=elapsed, attempts=attempts)

            await asyncio.sleep(self.retry_delay)
