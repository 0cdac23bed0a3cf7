"""Persisted user preferences."""

from pydantic import BaseModel, ConfigDict, Field


class Preferences(BaseModel):
    """Local settings file at <data dir>/settings.json."""

    model_config = ConfigDict(populate_by_name=True)

    notifications_enabled: bool = Field(
        True,
        alias="notificationsEnabled",
        description="Show desktop notifications for new alerts",
    )
