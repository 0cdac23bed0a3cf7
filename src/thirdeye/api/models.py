"""Pydantic models for the UI bridge API."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from thirdeye.models.status import AgentState, UpdatePhase


class SuccessResponse(BaseModel):
    """Success envelope for every bridge endpoint.

    HTTP status is always 200, the real status is in 'code'.
    """

    code: int = Field(default=200, description="Application-level status code")
    msg: str = Field(default="success", description="Status message")
    data: Optional[Any] = Field(None, description="Response data")


class ErrorResponse(BaseModel):
    """Error envelope; msg is meant to be shown to the user."""

    code: int = Field(..., description="Application-level error code (404/409/502)")
    msg: str = Field(..., description="User-visible error message")


class UpdateStatusData(BaseModel):
    """GET /api/v1.0/update data."""

    phase: UpdatePhase
    pending_version: Optional[str] = None
    resolved: bool = False
    has_update: Optional[bool] = None


class NotificationsPreference(BaseModel):
    """GET/PUT /api/v1.0/preferences/notifications body."""

    enabled: bool


class ShellStatusData(BaseModel):
    """GET /api/v1.0/status data."""

    version: str
    agent_state: AgentState
    agent_pid: Optional[int] = None
    agent_ready: Optional[bool] = None
    window_ready: bool = False
