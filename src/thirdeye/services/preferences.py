"""Persisted user preferences (local settings storage)."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from thirdeye.models.preferences import Preferences


class PreferenceStore:
    """Reads and writes <data dir>/settings.json.

    Preferences are loaded lazily and cached; a missing or corrupt file
    yields defaults.
    """

    def __init__(self, settings_path: Path):
        self.logger = logging.getLogger("thirdeye.preferences")
        self.settings_path = Path(settings_path)
        self._preferences: Optional[Preferences] = None

    def load(self) -> Preferences:
        """Load preferences from disk, falling back to defaults.

        Returns:
            Preferences (defaults if the file is missing or invalid)
        """
        if not self.settings_path.exists():
            self.logger.debug("No settings file found, using defaults")
            self._preferences = Preferences()
            return self._preferences

        try:
            with open(self.settings_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._preferences = Preferences.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            self.logger.error(f"Failed to load settings file, using defaults: {e}")
            self._preferences = Preferences()
        return self._preferences

    def save(self, preferences: Preferences) -> None:
        """Persist preferences.

        Raises:
            OSError: If the file cannot be written
        """
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.settings_path, "w", encoding="utf-8") as f:
            json.dump(preferences.model_dump(mode="json", by_alias=True), f, indent=2)
        self._preferences = preferences
        self.logger.debug(f"Saved settings: {preferences.model_dump(by_alias=True)}")

    @property
    def preferences(self) -> Preferences:
        if self._preferences is None:
            return self.load()
        return self._preferences

    @property
    def notifications_enabled(self) -> bool:
        return self.preferences.notifications_enabled

    def set_notifications_enabled(self, enabled: bool) -> None:
        updated = self.preferences.model_copy(update={"notifications_enabled": enabled})
        self.save(updated)
        self.logger.info(f"Notifications {'enabled' if enabled else 'disabled'}")
