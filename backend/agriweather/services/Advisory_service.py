"""
Rule-based farming guidance derived from current weather and the 3-day forecast.

Everything here is pure: no I/O, no clock reads except the month default.
Thresholds are strict comparisons exactly as written; a temperature of
35 °C does not count as "above 35".
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from agriweather.models.weather_model import (
    AgriculturalAdvisory,
    CropPlanningAdvice,
    CurrentWeather,
    ForecastDay,
)


@dataclass(frozen=True)
class WeatherFlags:
    rain_expected: bool
    heavy_rain_expected: bool
    dry_period: bool
    high_temp: bool
    low_humidity: bool
    high_wind: bool


def derive_flags(current: CurrentWeather, forecast: list[ForecastDay]) -> WeatherFlags:
    return WeatherFlags(
        rain_expected=any(f.precipitation.probability > 60 for f in forecast),
        heavy_rain_expected=any(f.precipitation.amount > 10 for f in forecast),
        dry_period=all(f.precipitation.probability < 20 for f in forecast),
        high_temp=current.temperature > 32,
        low_humidity=current.humidity < 40,
        high_wind=current.wind_speed > 15,
    )


def _current_month(month: Optional[int]) -> int:
    return month if month is not None else datetime.now().month


# --- Farming recommendations ---

def _temperature_tips(current: CurrentWeather) -> list[str]:
    if current.temperature > 35:
        return [
            "High temperature alert: Increase irrigation frequency and provide shade for sensitive crops",
            "Monitor crops for heat stress during peak afternoon hours (12-4 PM)",
        ]
    if current.temperature < 10:
        return [
            "Low temperature warning: Protect crops from frost and consider covering sensitive plants",
            "Use frost protection methods like mulching or row covers",
        ]
    if 25 <= current.temperature <= 30:
        return ["Optimal temperature for most crop activities - good time for field work"]
    return []


def _humidity_tips(current: CurrentWeather) -> list[str]:
    if current.humidity > 80:
        return [
            "High humidity: Monitor for fungal diseases and ensure good air circulation",
            "Avoid overhead irrigation to prevent disease spread",
        ]
    if current.humidity < 30:
        return [
            "Low humidity: Increase irrigation and consider mulching to retain soil moisture",
            "Water plants early morning or evening to reduce evaporation",
        ]
    return []


def _rain_tips(forecast: list[ForecastDay]) -> list[str]:
    # Heavy rain wins over a merely likely shower
    if any(f.precipitation.amount > 10 for f in forecast):
        return [
            "Heavy rain expected: Ensure proper drainage and postpone field activities",
            "Harvest ready crops before rain if possible",
        ]
    if any(f.precipitation.probability > 70 for f in forecast):
        return [
            "Rain expected: Postpone spraying activities and fertilizer application",
            "Good time for transplanting after rain stops",
        ]
    if all(f.precipitation.probability < 20 for f in forecast):
        return [
            "Dry weather ahead: Plan irrigation schedule and check soil moisture levels",
            "Consider drought-resistant crop varieties for new plantings",
        ]
    return []


def _wind_tips(current: CurrentWeather) -> list[str]:
    if current.wind_speed > 20:
        return [
            "Strong winds: Secure tall crops and avoid pesticide application",
            "Check greenhouse structures and irrigation systems",
        ]
    if current.wind_speed > 15:
        return ["Moderate winds: Good for natural pollination but avoid spraying"]
    if current.wind_speed < 5:
        return ["Low wind conditions: Ideal for pesticide and fertilizer application"]
    return []


def _seasonal_tip(month: int) -> str:
    if 3 <= month <= 5:
        return "Spring season: Good time for land preparation and summer crop sowing"
    if 6 <= month <= 9:
        return "Monsoon season: Focus on kharif crops and water management"
    if 10 <= month <= 12:
        return "Post-monsoon: Ideal for rabi crop sowing and harvest of kharif crops"
    return "Winter season: Focus on rabi crop management and harvest preparation"


def generate_farming_recommendations(
    current: CurrentWeather, forecast: list[ForecastDay], month: Optional[int] = None
) -> list[str]:
    recommendations = [
        *_temperature_tips(current),
        *_humidity_tips(current),
        *_rain_tips(forecast),
        *_wind_tips(current),
    ]

    if current.uv_index is not None and current.uv_index > 8:
        recommendations.append(
            "High UV levels: Provide shade for sensitive crops and avoid midday field work"
        )

    recommendations.append(_seasonal_tip(_current_month(month)))

    if not recommendations:
        recommendations.append("Weather conditions are favorable for normal farming activities")

    return recommendations


# --- Agricultural advisory ---

def irrigation_advice(current: CurrentWeather, flags: WeatherFlags) -> str:
    if flags.rain_expected:
        return "Reduce irrigation as rain is expected. Check soil drainage to prevent waterlogging."
    if flags.dry_period and (flags.high_temp or flags.low_humidity):
        return "Increase irrigation frequency due to dry conditions and high evaporation. Water early morning or evening."
    if current.humidity > 70:
        return "Moderate irrigation needed. Soil moisture appears adequate. Avoid overwatering."
    return "Normal irrigation schedule recommended. Monitor soil moisture levels regularly."


def pest_control_advice(current: CurrentWeather, flags: WeatherFlags) -> str:
    if flags.rain_expected:
        return "Postpone pesticide application due to expected rain. Wait for dry conditions."
    if flags.high_wind:
        return "Avoid pesticide spraying due to strong winds. Risk of drift and uneven application."
    if current.wind_speed < 5 and current.humidity < 80:
        return "Excellent conditions for pesticide application. Low wind and moderate humidity ideal."
    return "Good conditions for pest control activities. Monitor weather before application."


def harvesting_advice(current: CurrentWeather, flags: WeatherFlags) -> str:
    if flags.heavy_rain_expected:
        return "Urgent: Harvest ready crops immediately before heavy rain. Risk of crop damage and quality loss."
    if flags.rain_expected:
        return "Consider harvesting ready crops before rain. Ensure proper drying facilities."
    if current.humidity < 60 and current.wind_speed < 15:
        return "Excellent harvesting conditions. Low humidity ideal for crop drying and storage."
    return "Good harvesting weather. Ensure crops are properly dried before storage."


def planting_advice(current: CurrentWeather, flags: WeatherFlags) -> str:
    if flags.rain_expected and 20 < current.temperature < 35:
        return "Good time for planting. Expected rain will provide natural irrigation for new seedlings."
    if current.temperature > 35:
        return "Avoid planting in extreme heat. Wait for cooler conditions or provide shade protection."
    if current.temperature < 15:
        return "Cold conditions may affect germination. Consider protected cultivation or wait for warmer weather."
    return "Suitable conditions for planting. Ensure adequate soil preparation and irrigation."


def general_advice(current: CurrentWeather, forecast: list[ForecastDay]) -> str:
    if forecast:
        trend = "rising" if forecast[0].weather.temperature > current.temperature else "falling"
    else:
        trend = "stable"
    return f"Temperature {trend}. Monitor weather closely for next 3 days. Plan field activities accordingly."


def soil_conditions_advice(current: CurrentWeather, flags: WeatherFlags) -> str:
    if flags.rain_expected:
        return "Soil moisture will improve with expected rain. Ensure proper drainage to prevent waterlogging."
    if flags.dry_period:
        return "Soil may become dry. Consider mulching to retain moisture and reduce evaporation."
    if 25 < current.temperature < 30:
        return "Soil temperature optimal for root development. Good conditions for plant growth."
    return "Monitor soil moisture and temperature. Adjust irrigation and cultivation practices as needed."


def crop_protection_advice(current: CurrentWeather, forecast: list[ForecastDay], flags: WeatherFlags) -> str:
    if flags.high_temp and current.uv_index is not None and current.uv_index > 7:
        return "Provide shade protection for sensitive crops. High UV and temperature can cause stress."
    if flags.high_wind:
        return "Secure tall and climbing crops. Strong winds can cause physical damage and lodging."
    if any("storm" in f.weather.description.lower() for f in forecast):
        return "Storm conditions possible. Consider protective covers for valuable crops."
    return "Normal crop protection measures sufficient. Monitor for pest and disease pressure."


def generate_agricultural_advisory(
    current: CurrentWeather, forecast: list[ForecastDay]
) -> AgriculturalAdvisory:
    flags = derive_flags(current, forecast)

    return AgriculturalAdvisory(
        irrigation=irrigation_advice(current, flags),
        pest_control=pest_control_advice(current, flags),
        harvesting=harvesting_advice(current, flags),
        planting=planting_advice(current, flags),
        general_advice=general_advice(current, forecast),
        soil_conditions=soil_conditions_advice(current, flags),
        crop_protection=crop_protection_advice(current, forecast, flags),
    )


# --- Crop planning ---

def generate_crop_planning_advice(
    current: CurrentWeather, forecast: list[ForecastDay], month: Optional[int] = None
) -> list[CropPlanningAdvice]:
    """Evaluated in a fixed order; entries are appended, never sorted or merged."""
    advice = []
    rain_expected = derive_flags(current, forecast).rain_expected
    month = _current_month(month)
    high_uv = current.uv_index is not None and current.uv_index > 7

    if rain_expected and 20 < current.temperature < 35:
        advice.append(CropPlanningAdvice(
            crop_type="Rice",
            recommendation="Ideal conditions for rice transplanting. Expected rain will provide necessary water.",
            timing="Next 2-3 days before rain",
            priority="high",
            weather_factor="Upcoming rain and optimal temperature",
        ))

    # Winter crop, November through March
    if (month >= 11 or month <= 3) and current.temperature < 25 and current.humidity > 50:
        advice.append(CropPlanningAdvice(
            crop_type="Wheat",
            recommendation="Good conditions for wheat sowing and growth. Cool temperature favorable.",
            timing="Current week",
            priority="medium",
            weather_factor="Cool temperature and adequate humidity",
        ))

    if current.temperature > 30 or high_uv:
        advice.append(CropPlanningAdvice(
            crop_type="Tomato",
            recommendation="Protect tomato plants from heat stress. Provide shade and increase watering.",
            timing="Immediate action required",
            priority="high",
            weather_factor="High temperature and UV exposure",
        ))

    # Sowing window, April through July
    if 4 <= month <= 7 and current.temperature > 25 and not rain_expected:
        advice.append(CropPlanningAdvice(
            crop_type="Cotton",
            recommendation="Good conditions for cotton sowing. Ensure adequate irrigation setup.",
            timing="This week",
            priority="medium",
            weather_factor="Warm temperature and dry conditions",
        ))

    if rain_expected and current.temperature > 25:
        advice.append(CropPlanningAdvice(
            crop_type="Sugarcane",
            recommendation="Excellent time for sugarcane planting. Rain will help establishment.",
            timing="Before expected rain",
            priority="medium",
            weather_factor="Warm temperature and expected rainfall",
        ))

    if current.temperature < 30 and 40 < current.humidity < 80:
        advice.append(CropPlanningAdvice(
            crop_type="Leafy Vegetables",
            recommendation="Favorable conditions for leafy vegetable cultivation. Good growth expected.",
            timing="Current conditions",
            priority="low",
            weather_factor="Moderate temperature and humidity",
        ))

    return advice
