"""Request payloads for the agent HTTP API."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AgentConfigUpdate(BaseModel):
    """POST /api/config payload.

    Example:
        {
            "interval": 1,
            "log_level": "info",
            "cpu_threshold": 90,
            "memory_threshold": 90,
            "collect_threshold": 2.0
        }
    """

    interval: int = Field(1, ge=1, le=60, description="Collection interval in seconds")
    log_level: Literal["info", "debug"] = Field("info", description="Agent log level")
    cpu_threshold: Optional[float] = Field(None, gt=0, le=100)
    memory_threshold: Optional[float] = Field(None, gt=0, le=100)
    collect_threshold: Optional[float] = Field(
        None, gt=0, description="Collection duration threshold in seconds"
    )

    def to_payload(self) -> dict:
        """Serialize without unset optional thresholds."""
        return self.model_dump(mode="json", exclude_none=True)
