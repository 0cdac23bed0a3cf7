"""Startup progress models consumed by the splash surface."""

from typing import Optional

from pydantic import BaseModel, Field


class ProgressState(BaseModel):
    """splash-progress payload."""

    percent: int = Field(0, ge=0, le=100, description="Overall startup percent")
    text: str = Field("", description="Current step label")
    version: str = Field("", description="Shell version shown on the splash")


class DownloadProgress(BaseModel):
    """splash-download payload while an update is downloading."""

    percent: float = Field(..., ge=0, le=100)
    transferred: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    speed: float = Field(..., ge=0, description="Bytes per second")


class ReadinessResult(BaseModel):
    """Outcome of one readiness probe cycle."""

    ready: bool
    elapsed: float = Field(..., ge=0, description="Seconds spent probing")
    attempts: int = Field(0, ge=0)


class SplashSnapshot(BaseModel):
    """Everything the splash window needs in one poll."""

    progress: ProgressState
    download: Optional[DownloadProgress] = None
    closed: bool = False
