"""
Local file-based repository for weather cache records, alerts and user locations.
Uses JSON files instead of MongoDB (STORAGE_MODE=local).
"""
import json
import uuid
from datetime import datetime
from typing import Optional
from pathlib import Path

from agriweather.models.weather_model import GeoLocation, WeatherAlert, WeatherCacheRecord, as_aware_utc
from agriweather.core.logger import logs
import logging


class LocalRepository:
    """Implements the WeatherRepository, AlertRepository and UserRepository methods on disk."""

    def __init__(self, base_dir: str | Path = "data"):
        """Initialize local storage directories."""
        self.base_dir = Path(base_dir)
        self.cache_dir = self.base_dir / "weather_cache"
        self.alerts_dir = self.base_dir / "alerts"
        self.users_dir = self.base_dir / "users"

        # Create directories if they don't exist
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.alerts_dir.mkdir(parents=True, exist_ok=True)
        self.users_dir.mkdir(parents=True, exist_ok=True)

        logs.log(logging.INFO, f"Local file repository initialized at {self.base_dir}")

    async def ensure_indexes(self):
        """Nothing to index on disk."""

    def _safe_name(self, key: str) -> str:
        # Sanitize key for filename
        return key.replace(":", "_").replace("/", "_").replace(",", "_")

    def _get_cache_file(self, location_key: str) -> Path:
        return self.cache_dir / f"{self._safe_name(location_key)}.json"

    def _get_alerts_file(self, user_id: str) -> Path:
        return self.alerts_dir / f"{self._safe_name(user_id)}.json"

    def _get_user_file(self, user_id: str) -> Path:
        return self.users_dir / f"{self._safe_name(user_id)}.json"

    # ===== Weather Cache Methods =====

    async def get_cache(self, location_key: str) -> Optional[WeatherCacheRecord]:
        """Get the cached record for a location key, stale or not."""
        try:
            cache_file = self._get_cache_file(location_key)

            if not cache_file.exists():
                return None

            with open(cache_file, 'r') as f:
                return WeatherCacheRecord.model_validate(json.load(f))
        except Exception as e:
            logs.log(logging.ERROR, f"Failed to get cached weather: {str(e)}")
            return None

    async def save_cache(self, record: WeatherCacheRecord) -> bool:
        """Overwrite the record for its location key."""
        try:
            with open(self._get_cache_file(record.location_key), 'w') as f:
                json.dump(record.model_dump(mode="json"), f, indent=2)
            return True
        except Exception as e:
            logs.log(logging.ERROR, f"Failed to cache weather: {str(e)}")
            return False

    async def delete_cache(self, location_key: str) -> bool:
        try:
            self._get_cache_file(location_key).unlink(missing_ok=True)
            return True
        except Exception as e:
            logs.log(logging.ERROR, f"Failed to delete cached weather: {str(e)}")
            return False

    # ===== Alert Methods =====

    def _load_alerts(self, user_id: str) -> list[dict]:
        alerts_file = self._get_alerts_file(user_id)
        if not alerts_file.exists():
            return []
        with open(alerts_file, 'r') as f:
            return json.load(f)

    async def insert_alerts(self, alerts: list[WeatherAlert]) -> list[WeatherAlert]:
        """Append alerts, grouping them per user file."""
        if not alerts:
            return []
        try:
            saved = [alert.model_copy(update={"id": uuid.uuid4().hex}) for alert in alerts]

            by_user: dict[str, list[WeatherAlert]] = {}
            for alert in saved:
                by_user.setdefault(alert.user_id, []).append(alert)

            for user_id, user_alerts in by_user.items():
                stored = self._load_alerts(user_id)
                stored.extend(alert.model_dump(mode="json") for alert in user_alerts)
                with open(self._get_alerts_file(user_id), 'w') as f:
                    json.dump(stored, f, indent=2)

            return saved
        except Exception as e:
            logs.log(logging.ERROR, f"Failed to save alerts: {str(e)}")
            return []

    async def find_active_alerts(self, user_id: str, now: datetime) -> list[WeatherAlert]:
        """
        Raises on an unreadable alerts file, like the MongoDB repository does,
        so callers never mistake a failed read for "no alerts".
        """
        alerts = [WeatherAlert.model_validate(a) for a in self._load_alerts(user_id)]
        active = [a for a in alerts if a.is_active and as_aware_utc(a.expires_at) > now]
        return sorted(active, key=lambda a: a.created_at, reverse=True)

    # ===== User Methods =====

    async def get_user_location(self, user_id: str) -> Optional[GeoLocation]:
        try:
            user_file = self._get_user_file(user_id)
            if not user_file.exists():
                return None

            with open(user_file, 'r') as f:
                user = json.load(f)

            location = user.get("location")
            if not location:
                return None
            return GeoLocation(latitude=location["latitude"], longitude=location["longitude"])
        except Exception as e:
            logs.log(logging.ERROR, f"Failed to get user location: {str(e)}")
            return None

    async def save_user_location(self, user_id: str, location: GeoLocation) -> bool:
        """Used to seed users when running without MongoDB."""
        try:
            with open(self._get_user_file(user_id), 'w') as f:
                json.dump({"user_id": user_id, "location": location.model_dump()}, f, indent=2)
            return True
        except Exception as e:
            logs.log(logging.ERROR, f"Failed to save user location: {str(e)}")
            return False
