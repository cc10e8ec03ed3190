import math
import httpx
import logging
from datetime import datetime, timezone

from agriweather.core.errors import AppError, ExternalServiceError
from agriweather.core.logger import logs
from agriweather.core.resilience import with_timeout
from agriweather.models.weather_model import CurrentWeather, ForecastDay, GeoLocation, Precipitation

FORECAST_DAYS = 3


def _round(value: float) -> int:
    """Round half up, so 24.5 becomes 25 rather than 24."""
    return math.floor(value + 0.5)


def _parse_snapshot(item: dict) -> CurrentWeather:
    main = item["main"]
    wind = item.get("wind") or {}
    condition = item["weather"][0]

    return CurrentWeather(
        temperature=_round(main["temp"]),
        humidity=main["humidity"],
        pressure=main["pressure"],
        wind_speed=wind.get("speed") or 0,
        wind_direction=wind.get("deg") or 0,
        description=condition["description"],
        icon=condition["icon"],
        # Provider reports metres and omits the field at its 10 km cap
        visibility=item.get("visibility", 10000) / 1000,
        uv_index=item.get("uvi") or None,
        feels_like=_round(main["feels_like"]),
    )


def parse_current_weather(data: dict) -> CurrentWeather:
    """Maps the provider's current-weather payload."""
    return _parse_snapshot(data)


def parse_forecast_weather(data: dict) -> list[ForecastDay]:
    """
    Collapses the 3-hourly forecast list into one entry per UTC calendar day
    for the first FORECAST_DAYS days found. The middle entry of each day is
    used as the representative snapshot and precipitation reading, while
    min/max temperatures span every entry of that day.
    """
    daily: dict[str, list[dict]] = {}
    for item in data["list"]:
        date_key = datetime.fromtimestamp(item["dt"], tz=timezone.utc).date().isoformat()
        daily.setdefault(date_key, []).append(item)

    forecasts = []
    for date_key, day_items in list(daily.items())[:FORECAST_DAYS]:
        mid_day_item = day_items[len(day_items) // 2]
        temps = [item["main"]["temp"] for item in day_items]
        rain = mid_day_item.get("rain") or {}
        snow = mid_day_item.get("snow") or {}

        forecasts.append(
            ForecastDay(
                date=datetime.fromisoformat(date_key).replace(tzinfo=timezone.utc),
                weather=_parse_snapshot({**mid_day_item, "uvi": None}),
                precipitation=Precipitation(
                    probability=(mid_day_item.get("pop") or 0) * 100,
                    amount=rain.get("3h") or snow.get("3h") or 0,
                ),
                min_temp=_round(min(temps)),
                max_temp=_round(max(temps)),
            )
        )

    return forecasts


class WeatherClient:
    """
    Async client for the OpenWeather current-weather and 5 day / 3 hour
    forecast endpoints. Each request carries its own request timeout and is
    additionally raced against an operation deadline.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        request_timeout: float = 5.0,
        operation_timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.operation_timeout = operation_timeout
        self.http_client = http_client or httpx.AsyncClient()

    async def _get(self, endpoint: str, location: GeoLocation) -> dict:
        params = {
            "lat": location.latitude,
            "lon": location.longitude,
            "appid": self.api_key,
            "units": "metric",
        }
        resp = await self.http_client.get(
            f"{self.base_url}/{endpoint}", params=params, timeout=self.request_timeout
        )
        resp.raise_for_status()
        return resp.json()

    async def fetch(self, location: GeoLocation) -> tuple[CurrentWeather, list[ForecastDay]]:
        """
        Returns (current, forecast). Every failure is raised as an
        ExternalServiceError for the "Weather API" service; nothing is retried.
        """
        try:
            current_data = await with_timeout(
                lambda: self._get("weather", location),
                self.operation_timeout,
                "Weather API request timed out",
            )
            forecast_data = await with_timeout(
                lambda: self._get("forecast", location),
                self.operation_timeout,
                "Weather forecast API request timed out",
            )
            return parse_current_weather(current_data), parse_forecast_weather(forecast_data)

        except httpx.ConnectError as e:
            # Refused connections and DNS failures both surface as ConnectError
            logs.log(logging.ERROR, f"Weather API unreachable: {str(e)}")
            raise ExternalServiceError("Weather API", "Weather service is currently unavailable") from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logs.log(logging.ERROR, f"Weather API returned HTTP {status}", extra={"url": str(e.request.url)})
            if status == 401:
                raise ExternalServiceError("Weather API", "Weather API authentication failed") from e
            if status == 429:
                raise ExternalServiceError("Weather API", "Weather API rate limit exceeded") from e
            raise ExternalServiceError("Weather API", f"Weather API request failed with status {status}") from e

        except httpx.TimeoutException as e:
            logs.log(logging.ERROR, f"Weather API request timed out: {str(e)}")
            raise ExternalServiceError("Weather API", "Weather API request timed out") from e

        except AppError as e:
            logs.log(logging.ERROR, f"Weather API fetch error: {e.message}")
            raise ExternalServiceError("Weather API", e.message) from e

        except Exception as e:
            logs.log(logging.ERROR, f"Weather API fetch error: {str(e)}")
            raise ExternalServiceError("Weather API", str(e) or "Weather API request failed") from e

    async def aclose(self):
        await self.http_client.aclose()
