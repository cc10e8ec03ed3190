"""
Unit tests for provider payload parsing and the weather client's error mapping
"""
import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from agriweather.core.errors import ExternalServiceError
from agriweather.services.Weather_client import (
    WeatherClient,
    _round,
    parse_current_weather,
    parse_forecast_weather,
)
from conftest import DELHI, ProviderStub, current_payload, forecast_payload


class TestParsing:

    def test_round_is_half_up(self):
        assert _round(24.5) == 25
        assert _round(-0.5) == 0
        assert _round(24.49) == 24
        assert _round(-3.6) == -4

    def test_parse_current_weather(self):
        current = parse_current_weather(current_payload(temp=24.5, humidity=55, wind=3.4, uvi=6.2))

        assert current.temperature == 25
        assert current.feels_like == 26
        assert current.humidity == 55
        assert current.wind_speed == 3.4
        assert current.wind_direction == 200
        assert current.visibility == 8
        assert current.uv_index == 6.2
        assert current.description == "clear sky"

    def test_parse_current_weather_defaults(self):
        payload = current_payload()
        del payload["visibility"]
        payload["wind"] = {}

        current = parse_current_weather(payload)

        assert current.visibility == 10
        assert current.wind_speed == 0
        assert current.wind_direction == 0
        assert current.uv_index is None

    def test_forecast_groups_by_day_and_keeps_first_three(self):
        data = forecast_payload([{}, {}, {}, {}, {}])

        forecast = parse_forecast_weather(data)

        assert len(forecast) == 3
        assert [f.date for f in forecast] == [
            datetime(2026, 10, 20, tzinfo=timezone.utc),
            datetime(2026, 10, 21, tzinfo=timezone.utc),
            datetime(2026, 10, 22, tzinfo=timezone.utc),
        ]

    def test_forecast_uses_middle_entry_and_spans_min_max(self):
        data = forecast_payload([{"temps": [18.4, 27.5, 31.2, 21.0], "pop": 0.85, "rain": 12.5}])

        day = parse_forecast_weather(data)[0]

        # Four entries: index 2 is the representative one
        assert day.weather.temperature == 31
        assert day.weather.uv_index is None
        assert day.min_temp == 18
        assert day.max_temp == 31
        assert day.precipitation.probability == pytest.approx(85)
        assert day.precipitation.amount == 12.5

    def test_forecast_falls_back_to_snow_then_zero(self):
        data = forecast_payload([{}, {}])
        for item in data["list"][:3]:
            item["snow"] = {"3h": 2.5}
        for item in data["list"]:
            item.pop("pop")

        first, second = parse_forecast_weather(data)

        assert first.precipitation.amount == 2.5
        assert second.precipitation.amount == 0
        assert second.precipitation.probability == 0

    def test_forecast_with_fewer_days_returns_what_is_there(self):
        assert len(parse_forecast_weather(forecast_payload([{}]))) == 1
        assert parse_forecast_weather({"list": []}) == []


class TestWeatherClientFetch:

    def test_fetch_calls_both_endpoints(self):
        provider = ProviderStub()

        current, forecast = asyncio.run(provider.client().fetch(DELHI))

        assert provider.calls == ["/data/2.5/weather", "/data/2.5/forecast"]
        assert current.temperature == 22
        assert len(forecast) == 3

    def test_fetch_sends_metric_units_and_key(self):
        seen = []

        def handler(request: httpx.Request):
            seen.append(dict(request.url.params))
            if request.url.path.endswith("/forecast"):
                return httpx.Response(200, json=forecast_payload([{}]))
            return httpx.Response(200, json=current_payload())

        client = WeatherClient("abc", "https://weather.test/data/2.5/",
                               http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        asyncio.run(client.fetch(DELHI))

        assert seen[0]["appid"] == "abc"
        assert seen[0]["units"] == "metric"
        assert float(seen[0]["lat"]) == DELHI.latitude
        assert float(seen[0]["lon"]) == DELHI.longitude

    @pytest.mark.parametrize("status, message", [
        (401, "Weather API authentication failed"),
        (429, "Weather API rate limit exceeded"),
        (500, "Weather API request failed with status 500"),
    ])
    def test_http_status_errors_are_mapped(self, status, message):
        provider = ProviderStub(status_code=status)

        with pytest.raises(ExternalServiceError) as exc:
            asyncio.run(provider.client().fetch(DELHI))

        assert exc.value.service_name == "Weather API"
        assert exc.value.message == message
        assert exc.value.status_code == 502

    def test_connection_refused_is_unavailable(self):
        provider = ProviderStub(error=httpx.ConnectError("Connection refused"))

        with pytest.raises(ExternalServiceError) as exc:
            asyncio.run(provider.client().fetch(DELHI))

        assert exc.value.message == "Weather service is currently unavailable"
        assert str(exc.value) == "Weather API: Weather service is currently unavailable"

    def test_transport_timeout_is_mapped(self):
        provider = ProviderStub(error=httpx.ReadTimeout("timed out"))

        with pytest.raises(ExternalServiceError) as exc:
            asyncio.run(provider.client().fetch(DELHI))

        assert exc.value.message == "Weather API request timed out"

    def test_operation_deadline_is_mapped(self):
        async def slow_handler(request):
            await asyncio.sleep(1)
            return httpx.Response(200, json=current_payload())

        client = WeatherClient("abc", "https://weather.test/data/2.5", operation_timeout=0.01,
                               http_client=httpx.AsyncClient(transport=httpx.MockTransport(slow_handler)))

        with pytest.raises(ExternalServiceError) as exc:
            asyncio.run(client.fetch(DELHI))

        assert exc.value.service_name == "Weather API"
        assert exc.value.message == "Weather API request timed out"

    def test_malformed_payload_is_external_error(self):
        provider = ProviderStub(current={"unexpected": True})

        with pytest.raises(ExternalServiceError) as exc:
            asyncio.run(provider.client().fetch(DELHI))

        assert exc.value.service_name == "Weather API"
