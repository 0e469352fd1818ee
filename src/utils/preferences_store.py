"""
JSON-file persistence for the last selected place and the resolution mode
"""

import json
import logging
import os
import tempfile
from typing import Any, Dict, Optional

from models.solar import Place

logger = logging.getLogger(__name__)


class PreferenceKeys:
    LAST_SELECTED_CITY_NAME = "lastSelectedCityName"
    LAST_SELECTED_CITY_LATITUDE = "lastSelectedCityLatitude"
    LAST_SELECTED_CITY_LONGITUDE = "lastSelectedCityLongitude"
    LAST_SELECTED_CITY_TIMEZONE_ID = "lastSelectedCityTimezoneId"
    USE_CURRENT_LOCATION = "useCurrentLocation"


class PreferencesStore:
    """Small key-value store persisted as a JSON document"""

    def __init__(self, path: str):
        self.path = path
        self._values: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read preferences from {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._values, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_many(self, values: Dict[str, Any]) -> None:
        self._values.update(values)
        self._write()

    def load_last_place(self) -> Optional[Place]:
        name = self.get(PreferenceKeys.LAST_SELECTED_CITY_NAME)
        latitude = self.get(PreferenceKeys.LAST_SELECTED_CITY_LATITUDE)
        longitude = self.get(PreferenceKeys.LAST_SELECTED_CITY_LONGITUDE)
        if not name or latitude is None or longitude is None:
            return None
        return Place(
            name=name,
            latitude=float(latitude),
            longitude=float(longitude),
            timezone=self.get(PreferenceKeys.LAST_SELECTED_CITY_TIMEZONE_ID),
        )

    def save_last_place(self, place: Place) -> None:
        self.set_many(
            {
                PreferenceKeys.LAST_SELECTED_CITY_NAME: place.name,
                PreferenceKeys.LAST_SELECTED_CITY_LATITUDE: place.latitude,
                PreferenceKeys.LAST_SELECTED_CITY_LONGITUDE: place.longitude,
                PreferenceKeys.LAST_SELECTED_CITY_TIMEZONE_ID: place.timezone,
            }
        )
        logger.info(f"Saved '{place.name}' as last selected city")

    def load_use_current_location(self, default: bool = True) -> bool:
        return bool(self.get(PreferenceKeys.USE_CURRENT_LOCATION, default))

    def save_use_current_location(self, value: bool) -> None:
        self.set_many({PreferenceKeys.USE_CURRENT_LOCATION: value})
