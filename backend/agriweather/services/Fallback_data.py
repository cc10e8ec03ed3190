"""Static weather payload served when neither live nor cached data is available."""
from datetime import timedelta

from agriweather.models.weather_model import (
    AgriculturalAdvisory,
    CurrentWeather,
    ForecastDay,
    GeoLocation,
    Precipitation,
    WeatherResponse,
    utc_now,
)

FALLBACK_RECOMMENDATIONS = [
    "Weather data is temporarily unavailable",
    "Please check local weather conditions",
    "Consult local agricultural experts for current advice",
]

FALLBACK_ADVISORY = AgriculturalAdvisory(
    irrigation="Weather data unavailable. Follow standard irrigation practices.",
    pest_control="Weather data unavailable. Monitor conditions before application.",
    harvesting="Weather data unavailable. Check crop maturity manually.",
    planting="Weather data unavailable. Follow seasonal guidelines.",
    general_advice="Weather service temporarily unavailable. Use local observations.",
    soil_conditions="Monitor soil moisture manually.",
    crop_protection="Follow standard crop protection measures.",
)


def build_fallback_response(location: GeoLocation) -> WeatherResponse:
    now = utc_now()
    current = CurrentWeather(
        temperature=25,
        humidity=60,
        pressure=1013,
        wind_speed=10,
        wind_direction=180,
        description="Data temporarily unavailable",
        icon="unknown",
        visibility=10,
        feels_like=25,
    )
    forecast_snapshot = CurrentWeather(
        temperature=25,
        humidity=65,
        pressure=1013,
        wind_speed=8,
        wind_direction=180,
        description="Forecast temporarily unavailable",
        icon="unknown",
        visibility=10,
        feels_like=25,
    )
    forecast = [
        ForecastDay(
            date=now + timedelta(days=i + 1),
            weather=forecast_snapshot,
            precipitation=Precipitation(probability=0, amount=0),
            min_temp=20,
            max_temp=30,
        )
        for i in range(3)
    ]

    return WeatherResponse(
        location=location,
        current=current,
        forecast=forecast,
        farming_recommendations=list(FALLBACK_RECOMMENDATIONS),
        agricultural_advisory=FALLBACK_ADVISORY,
        crop_planning_advice=[],
        cached_at=now,
        is_fallback=True,
    )
