"""Agent process events."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ProcessEventKind(str, Enum):
    """Things that can happen to the supervised process."""

    STARTING = "starting"
    SPAWNED = "spawned"
    SPAWN_FAILED = "spawnFailed"
    EXITED = "exited"
    KILLED = "killed"


class ProcessEvent(BaseModel):
    """One observed process lifecycle event."""

    kind: ProcessEventKind
    pid: Optional[int] = Field(None, description="OS process id")
    exit_code: Optional[int] = Field(None, description="Exit code for exited")
    error: Optional[str] = Field(None, description="Error detail for spawnFailed")
