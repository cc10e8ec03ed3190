from datetime import datetime, timedelta, timezone

import httpx
import pytest
from redis import exceptions as redis_exceptions

from agriweather.core.resilience import CircuitBreaker
from agriweather.models.weather_model import (
    CurrentWeather,
    ForecastDay,
    GeoLocation,
    Precipitation,
    WeatherCacheRecord,
)
from agriweather.repos.cache_repo import WeatherCacheStore
from agriweather.repos.local_repo import LocalRepository
from agriweather.services.Alert_service import AlertService
from agriweather.services.Weather_client import WeatherClient
from agriweather.services.Weather_service import WeatherService

DELHI = GeoLocation(latitude=28.6139, longitude=77.2090)


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (string values only)."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise redis_exceptions.ConnectionError("Connection refused")

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key):
        self._check()
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        self._check()
        return 1 if key in self.store else 0

    async def flushdb(self):
        self._check()
        self.store.clear()
        return True


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def snapshot(**overrides) -> CurrentWeather:
    values = dict(
        temperature=22,
        humidity=50,
        pressure=1012,
        wind_speed=8,
        wind_direction=90,
        description="clear sky",
        icon="01d",
        visibility=10,
        uv_index=None,
        feels_like=22,
    )
    values.update(overrides)
    return CurrentWeather(**values)


def forecast_day(probability=30, amount=0, day=1, **weather) -> ForecastDay:
    return ForecastDay(
        date=datetime(2026, 10, 19, tzinfo=timezone.utc) + timedelta(days=day),
        weather=snapshot(**weather),
        precipitation=Precipitation(probability=probability, amount=amount),
        min_temp=18,
        max_temp=26,
    )


def make_record(key="28.6139,77.2090", temperature=22) -> WeatherCacheRecord:
    now = datetime.now(timezone.utc)
    return WeatherCacheRecord(
        location_key=key,
        latitude=DELHI.latitude,
        longitude=DELHI.longitude,
        current=snapshot(temperature=temperature),
        forecast=[forecast_day()],
        farming_recommendations=["tip"],
        cached_at=now,
        expires_at=now + timedelta(hours=1),
    )


def current_payload(temp=22.0, humidity=50, wind=3.0, uvi=None, description="clear sky") -> dict:
    payload = {
        "main": {"temp": temp, "feels_like": temp + 1, "humidity": humidity, "pressure": 1010},
        "wind": {"speed": wind, "deg": 200},
        "weather": [{"description": description, "icon": "01d"}],
        "visibility": 8000,
    }
    if uvi is not None:
        payload["uvi"] = uvi
    return payload


def forecast_payload(days, start=datetime(2026, 10, 20, tzinfo=timezone.utc)) -> dict:
    """
    `days` is a list of dicts with optional pop / rain / temps keys; each day
    gets one 3-hourly entry per temperature in `temps`.
    """
    items = []
    for offset, day in enumerate(days):
        temps = day.get("temps", [20.0, 24.0, 22.0])
        for slot, temp in enumerate(temps):
            dt = start + timedelta(days=offset, hours=3 * slot)
            item = {
                "dt": int(dt.timestamp()),
                "main": {"temp": temp, "feels_like": temp, "humidity": 60, "pressure": 1008},
                "wind": {"speed": 4.0, "deg": 90},
                "weather": [{"description": day.get("description", "few clouds"), "icon": "02d"}],
                "visibility": 10000,
                "pop": day.get("pop", 0.1),
            }
            if "rain" in day:
                item["rain"] = {"3h": day["rain"]}
            items.append(item)
    return {"list": items}


class ProviderStub:
    """Serves canned OpenWeather payloads through httpx.MockTransport."""

    def __init__(self, current=None, forecast=None, status_code=200, error: Exception | None = None):
        self.current = current or current_payload()
        self.forecast = forecast or forecast_payload([{}, {}, {}])
        self.status_code = status_code
        self.error = error
        self.calls: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"message": "error"})
        if request.url.path.endswith("/forecast"):
            return httpx.Response(200, json=self.forecast)
        return httpx.Response(200, json=self.current)

    def client(self) -> WeatherClient:
        return WeatherClient(
            api_key="test-key",
            base_url="https://weather.test/data/2.5",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler)),
        )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return WeatherCacheStore(fake_redis, weather_ttl=3600, alert_ttl=86400)


@pytest.fixture
def local_repo(tmp_path):
    return LocalRepository(tmp_path / "data")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_service(local_repo, cache, clock):
    def _make(provider: ProviderStub, **kwargs) -> WeatherService:
        breaker = kwargs.pop("circuit_breaker", None) or CircuitBreaker(3, 30.0, name="weather-api", clock=clock)
        return WeatherService(
            local_repo, cache, provider.client(), circuit_breaker=breaker, user_repo=local_repo, **kwargs
        )
    return _make


@pytest.fixture
def make_alert_service(local_repo, cache, make_service):
    def _make(provider: ProviderStub) -> AlertService:
        return AlertService(make_service(provider), local_repo, local_repo, cache)
    return _make
