import logging
from datetime import timedelta

from pydantic import ValidationError

from agriweather.core.config import settings
from agriweather.core.errors import UserLocationNotFoundError
from agriweather.core.logger import logs
from agriweather.core.resilience import CircuitBreaker
from agriweather.models.weather_model import (
    GeoLocation,
    WeatherCacheRecord,
    WeatherResponse,
    as_aware_utc,
    location_key,
    utc_now,
)
from agriweather.repos.cache_repo import WeatherCacheStore
from agriweather.services.Advisory_service import (
    generate_agricultural_advisory,
    generate_crop_planning_advice,
    generate_farming_recommendations,
)
from agriweather.services.Fallback_data import build_fallback_response
from agriweather.services.Weather_client import WeatherClient

OUTDATED_NOTICE = "Weather data may be outdated due to service issues"


class WeatherService:
    """
    Forecast acquisition with graceful degradation.

    Lookup order: cache store, durable store, live provider (behind the
    circuit breaker), stale cached record, static fallback. get_forecast
    never raises; a degraded answer is flagged with is_stale or is_fallback.
    """

    def __init__(
        self,
        repo,
        cache: WeatherCacheStore,
        client: WeatherClient,
        circuit_breaker: CircuitBreaker | None = None,
        user_repo=None,
        cache_duration: int = settings.CACHE_DURATION,
    ):
        self.repo = repo
        self.cache = cache
        self.client = client
        self.user_repo = user_repo
        self.cache_duration = cache_duration
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            settings.CIRCUIT_FAILURE_THRESHOLD,
            settings.CIRCUIT_RECOVERY_TIMEOUT,
            name="weather-api",
        )

    async def get_forecast(self, location: GeoLocation) -> WeatherResponse:
        key = location_key(location)

        try:
            # 1. Check Cache
            cached = await self._get_cached_weather(key)
            if cached and not self._is_cache_expired(cached):
                logs.log(logging.INFO, f"✓ Weather cache HIT for {key} (cached at {cached.cached_at})")
                return self._response_from_record(location, cached)

            logs.log(logging.INFO, f"✗ Weather cache {'STALE' if cached else 'MISS'} for {key}. Calling weather API...")

            async def fallback() -> WeatherResponse:
                return self._degraded_response(location, cached)

            # 2. Call External API behind the circuit breaker
            weather = await self.circuit_breaker.execute(
                lambda: self._fetch_weather_from_api(location),
                fallback,
            )

            # 3. Save to Cache, live data only
            if not weather.is_fallback and not weather.is_stale:
                await self._cache_weather_data(key, location, weather)

            return weather

        except Exception as e:
            logs.log(logging.ERROR, f"Weather service error for {key}: {str(e)}", exc_info=True)
            cached = await self._get_cached_weather(key)
            return self._degraded_response(location, cached)

    async def get_forecast_for_user(self, user_id: str) -> WeatherResponse:
        location = await self.user_repo.get_user_location(user_id) if self.user_repo else None
        if location is None:
            raise UserLocationNotFoundError(user_id)
        return await self.get_forecast(location)

    async def invalidate_cache(self, location: GeoLocation):
        key = location_key(location)
        try:
            await self.cache.invalidate_weather_cache(key)
            await self.repo.delete_cache(key)
            logs.log(logging.INFO, f"Weather cache invalidated for {key}")
        except Exception as e:
            logs.log(logging.ERROR, f"Error invalidating weather cache for {key}: {str(e)}")

    async def _fetch_weather_from_api(self, location: GeoLocation) -> WeatherResponse:
        current, forecast = await self.client.fetch(location)

        return WeatherResponse(
            location=location,
            current=current,
            forecast=forecast,
            farming_recommendations=generate_farming_recommendations(current, forecast),
            agricultural_advisory=generate_agricultural_advisory(current, forecast),
            crop_planning_advice=generate_crop_planning_advice(current, forecast),
            cached_at=utc_now(),
            is_fallback=False,
        )

    def _degraded_response(self, location: GeoLocation, cached: WeatherCacheRecord | None) -> WeatherResponse:
        if cached is None:
            logs.log(logging.WARNING, f"No cached weather for {location_key(location)}, serving fallback data")
            return build_fallback_response(location)

        logs.log(logging.WARNING, f"Returning expired cached data for {cached.location_key} due to service failure")
        response = self._response_from_record(location, cached)
        return response.model_copy(update={
            "farming_recommendations": [*cached.farming_recommendations, OUTDATED_NOTICE],
            "is_stale": True,
        })

    @staticmethod
    def _response_from_record(location: GeoLocation, record: WeatherCacheRecord) -> WeatherResponse:
        return WeatherResponse(
            location=location,
            current=record.current,
            forecast=record.forecast,
            farming_recommendations=record.farming_recommendations,
            agricultural_advisory=record.agricultural_advisory,
            crop_planning_advice=record.crop_planning_advice,
            cached_at=record.cached_at,
        )

    def _is_cache_expired(self, record: WeatherCacheRecord) -> bool:
        age = utc_now() - as_aware_utc(record.cached_at)
        return age.total_seconds() > self.cache_duration

    async def _cache_weather_data(self, key: str, location: GeoLocation, weather: WeatherResponse):
        record = WeatherCacheRecord(
            location_key=key,
            latitude=location.latitude,
            longitude=location.longitude,
            current=weather.current,
            forecast=weather.forecast,
            farming_recommendations=weather.farming_recommendations,
            agricultural_advisory=weather.agricultural_advisory,
            crop_planning_advice=weather.crop_planning_advice or [],
            cached_at=weather.cached_at,
            expires_at=weather.cached_at + timedelta(seconds=self.cache_duration),
        )

        try:
            await self.repo.save_cache(record)
        except Exception as e:
            logs.log(logging.ERROR, f"Error caching weather data in durable store: {str(e)}")

        await self.cache.set_weather_data(key, record.model_dump(mode="json"))

    async def _get_cached_weather(self, key: str) -> WeatherCacheRecord | None:
        try:
            cached = await self.cache.get_weather_data(key)
            if cached:
                try:
                    return WeatherCacheRecord.model_validate(cached)
                except ValidationError as e:
                    logs.log(logging.WARNING, f"Discarding malformed cache entry for {key}: {str(e)}")

            # Fallback to the durable store and warm the cache store from it
            record = await self.repo.get_cache(key)
            if record:
                await self.cache.set_weather_data(key, record.model_dump(mode="json"))
                return record

            return None
        except Exception as e:
            logs.log(logging.ERROR, f"Error getting cached weather for {key}: {str(e)}")
            return None

    def circuit_state(self) -> dict:
        state = self.circuit_breaker.get_state()
        return {"state": state.state.value, "failures": state.failures}
