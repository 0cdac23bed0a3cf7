"""Status enums for the agent process and the update machine."""

from enum import Enum


class AgentState(str, Enum):
    """Supervised agent process lifecycle.

    State transitions:
    notStarted → starting → running → stopped
                     ↓
                   failed
    """

    NOT_STARTED = "notStarted"
    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"


class UpdatePhase(str, Enum):
    """Update check/download lifecycle.

    State transitions:
    idle → checking → available → downloading (*) → downloaded
                ↓                       ↓
          notAvailable / errored ←──────
    """

    IDLE = "idle"
    CHECKING = "checking"
    AVAILABLE = "available"
    DOWNLOADING = "downloading"
    DOWNLOADED = "downloaded"
    NOT_AVAILABLE = "notAvailable"
    ERRORED = "errored"


TERMINAL_UPDATE_PHASES = frozenset(
    {UpdatePhase.DOWNLOADED, UpdatePhase.NOT_AVAILABLE, UpdatePhase.ERRORED}
)
