"""Alert models returned by the agent's /api/alerts endpoint."""

from typing import NamedTuple

from pydantic import BaseModel, Field


class AlertKey(NamedTuple):
    """Identity of one alert occurrence."""

    type: str
    timestamp: str


class AlertEvent(BaseModel):
    """One reported anomaly occurrence."""

    type: str = Field(..., description="Alert type, e.g. cpu_high")
    message: str = Field("", description="Human-readable description")
    timestamp: str = Field(..., description="ISO 8601 time the alert fired")
    value: float = Field(0.0, description="Observed value")
    threshold: float = Field(0.0, description="Configured threshold")
    active: bool = Field(True, description="True while the alert is firing")

    @property
    def key(self) -> AlertKey:
        return AlertKey(self.type, self.timestamp)


class AlertsResponse(BaseModel):
    """GET /api/alerts response."""

    active: list[AlertEvent] = Field(default_factory=list)
    history: list[AlertEvent] = Field(default_factory=list)


ALERT_TYPE_LABELS = {
    "cpu_high": "High CPU",
    "memory_high": "High Memory",
    "collect_slow": "Slow Collection",
}


def alert_label(alert_type: str) -> str:
    """Human-readable label for an alert type, falling back to the raw type."""
    return ALERT_TYPE_LABELS.get(alert_type, alert_type)
