"""Update machine events, results, and the update feed manifest."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from thirdeye.models.status import TERMINAL_UPDATE_PHASES, UpdatePhase


class UpdateEvent(BaseModel):
    """One lifecycle event from the update source.

    The latest event received is also the coordinator's current state, so the
    same model serves as UpdateState.
    """

    phase: UpdatePhase = Field(..., description="Update lifecycle phase")
    version: Optional[str] = Field(None, description="Version for available/downloaded")
    percent: Optional[float] = Field(None, ge=0, le=100, description="Download percent")
    transferred: Optional[int] = Field(None, ge=0, description="Bytes downloaded so far")
    total: Optional[int] = Field(None, ge=0, description="Total bytes to download")
    speed: Optional[float] = Field(None, ge=0, description="Bytes per second")
    message: Optional[str] = Field(None, description="Error detail for errored")

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_UPDATE_PHASES

    @classmethod
    def idle(cls) -> "UpdateEvent":
        return cls(phase=UpdatePhase.IDLE)

    @classmethod
    def checking(cls) -> "UpdateEvent":
        return cls(phase=UpdatePhase.CHECKING)

    @classmethod
    def available(cls, version: str) -> "UpdateEvent":
        return cls(phase=UpdatePhase.AVAILABLE, version=version)

    @classmethod
    def downloading(
        cls, percent: float, transferred: int, total: int, speed: float
    ) -> "UpdateEvent":
        return cls(
            phase=UpdatePhase.DOWNLOADING,
            percent=min(max(percent, 0.0), 100.0),
            transferred=transferred,
            total=total,
            speed=speed,
        )

    @classmethod
    def downloaded(cls, version: str) -> "UpdateEvent":
        return cls(phase=UpdatePhase.DOWNLOADED, version=version)

    @classmethod
    def not_available(cls) -> "UpdateEvent":
        return cls(phase=UpdatePhase.NOT_AVAILABLE)

    @classmethod
    def errored(cls, message: str) -> "UpdateEvent":
        return cls(phase=UpdatePhase.ERRORED, message=message)


class UpdateResult(BaseModel):
    """Outcome of one update run, resolved exactly once per session."""

    has_update: bool = Field(..., description="True when an update was downloaded")
    version: Optional[str] = Field(None, description="Downloaded version")


class UpdateManifest(BaseModel):
    """latest.json published on the update feed.

    Example:
        {
            "version": "1.2.3",
            "url": "https://updates.example.com/the-third-eye-1.2.3.exe",
            "size": 48213504,
            "md5": "600aff0f78265dd25bb6907828f916dd",
            "notes": "Bug fixes"
        }
    """

    version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$", description="Semantic version")
    url: str = Field(..., pattern=r"^https?://.+", description="Installer download URL")
    size: int = Field(..., gt=0, description="Installer size in bytes")
    md5: str = Field(..., pattern=r"^[a-f0-9]{32}$", description="Expected MD5 hash")
    notes: Optional[str] = Field(None, description="Release notes")

    @field_validator("url")
    @classmethod
    def no_directory_traversal(cls, v: str) -> str:
        """Installer file name is taken from the URL path."""
        if ".." in v:
            raise ValueError("URL must not contain '..'")
        return v

    @property
    def file_name(self) -> str:
        return self.url.rstrip("/").rsplit("/", 1)[-1].split("?", 1)[0]


def parse_version(version: str) -> tuple[int, ...]:
    """Parse a dotted numeric version into a comparable tuple.

    Args:
        version: Version string such as "1.2.3" (a leading "v" is ignored)

    Returns:
        Tuple of ints, e.g. (1, 2, 3)

    Raises:
        ValueError: If any component is not numeric
    """
    return tuple(int(part) for part in version.lstrip("v").split("."))


def is_newer(candidate: str, current: str) -> bool:
    """Return True if candidate is a strictly newer version than current."""
    return parse_version(candidate) > parse_version(current)
