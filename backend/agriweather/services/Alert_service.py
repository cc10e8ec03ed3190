import logging
from datetime import datetime, timedelta

from agriweather.core.config import settings
from agriweather.core.logger import logs
from agriweather.models.weather_model import (
    FarmingAlert,
    GeoLocation,
    WeatherAlert,
    WeatherResponse,
    as_aware_utc,
    utc_now,
)
from agriweather.repos.cache_repo import WeatherCacheStore
from agriweather.services.Weather_service import WeatherService


def build_farming_alerts(
    user_id: str,
    location: GeoLocation,
    weather: WeatherResponse,
    now: datetime,
    alert_duration: timedelta,
) -> list[WeatherAlert]:
    """Heat, heavy rain and wind alerts, in that order."""
    alerts = []
    common = {
        "user_id": user_id,
        "location": location,
        "is_active": True,
        "created_at": now,
        "expires_at": now + alert_duration,
    }

    if weather.current.temperature > 40:
        alerts.append(WeatherAlert(
            alert_type="temperature",
            title="Extreme Heat Warning",
            message=f"Temperature is {weather.current.temperature}°C. Increase irrigation and provide shade for crops.",
            severity="critical",
            **common,
        ))

    heavy_rain_day = next(
        (f for f in weather.forecast if f.precipitation.probability > 80 and f.precipitation.amount > 10),
        None,
    )
    if heavy_rain_day:
        alerts.append(WeatherAlert(
            alert_type="rain",
            title="Heavy Rain Alert",
            message=f"Heavy rain expected on {heavy_rain_day.date.strftime('%a %b %d %Y')}. Ensure proper drainage and postpone field activities.",
            severity="high",
            **common,
        ))

    if weather.current.wind_speed > 20:
        alerts.append(WeatherAlert(
            alert_type="wind",
            title="Strong Wind Warning",
            message=f"Wind speed is {weather.current.wind_speed:g} km/h. Secure tall crops and avoid spraying.",
            severity="medium",
            **common,
        ))

    return alerts


class AlertService:
    """
    Generates weather-driven farming alerts for a user and lists the ones
    still active. Both operations return an empty list instead of raising.
    """

    def __init__(
        self,
        weather_service: WeatherService,
        alert_repo,
        user_repo,
        cache: WeatherCacheStore,
        alert_duration: timedelta = timedelta(hours=settings.ALERT_DURATION_HOURS),
    ):
        self.weather_service = weather_service
        self.alert_repo = alert_repo
        self.user_repo = user_repo
        self.cache = cache
        self.alert_duration = alert_duration

    async def generate_farming_alerts(self, user_id: str) -> list[FarmingAlert]:
        try:
            location = await self.user_repo.get_user_location(user_id)
            if location is None:
                logs.log(logging.INFO, f"No stored location for user {user_id}, skipping alerts")
                return []

            weather = await self.weather_service.get_forecast(location)
            alerts = build_farming_alerts(user_id, location, weather, utc_now(), self.alert_duration)
            if not alerts:
                return []

            saved = await self.alert_repo.insert_alerts(alerts)
            await self.cache.invalidate_user_alerts(user_id)
            logs.log(logging.INFO, "Generated weather alerts", extra={"user_id": user_id, "count": len(saved)})

            return [alert.to_farming_alert() for alert in saved]

        except Exception as e:
            logs.log(logging.ERROR, f"Error generating farming alerts for user {user_id}: {str(e)}")
            return []

    async def get_user_alerts(self, user_id: str) -> list[FarmingAlert]:
        """Active alerts, newest first. Expiry is checked here, on every read."""
        now = utc_now()
        try:
            cached = await self.cache.get_user_alerts(user_id)
            if cached is not None:
                alerts = [WeatherAlert.model_validate(a) for a in cached]
            else:
                alerts = await self.alert_repo.find_active_alerts(user_id, now)
                await self.cache.set_user_alerts(user_id, [a.model_dump(mode="json") for a in alerts])

            active = [a for a in alerts if a.is_active and as_aware_utc(a.expires_at) > now]
            active.sort(key=lambda a: as_aware_utc(a.created_at), reverse=True)
            return [alert.to_farming_alert() for alert in active]

        except Exception as e:
            logs.log(logging.ERROR, f"Error fetching alerts for user {user_id}: {str(e)}")
            return []
