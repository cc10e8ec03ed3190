from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime, timezone

Priority = Literal["low", "medium", "high"]
Severity = Literal["low", "medium", "high", "critical"]
AlertType = Literal["rain", "temperature", "wind", "humidity", "farming_activity"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_aware_utc(value: datetime) -> datetime:
    """Naive datetimes coming back from a store are treated as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


# --- Domain Models ---
class GeoLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    model_config = {"frozen": True}


def location_key(location: GeoLocation) -> str:
    """Cache identifier: both coordinates fixed to 4 decimals, with -0.0 folded into 0.0."""
    return f"{location.latitude + 0.0:.4f},{location.longitude + 0.0:.4f}"


class CurrentWeather(BaseModel):
    temperature: int  # °C, rounded
    humidity: float  # %
    pressure: float  # hPa
    wind_speed: float  # km/h
    wind_direction: float  # degrees
    description: str
    icon: str
    visibility: float  # km
    uv_index: Optional[float] = None
    feels_like: int  # °C, rounded


class Precipitation(BaseModel):
    probability: float  # %
    amount: float  # mm


class ForecastDay(BaseModel):
    date: datetime
    weather: CurrentWeather
    precipitation: Precipitation
    min_temp: int
    max_temp: int


class AgriculturalAdvisory(BaseModel):
    irrigation: str
    pest_control: str
    harvesting: str
    planting: str
    general_advice: str
    soil_conditions: str
    crop_protection: str


class CropPlanningAdvice(BaseModel):
    crop_type: str
    recommendation: str
    timing: str
    priority: Priority
    weather_factor: str


# --- API Request/Response Models ---
class WeatherRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class WeatherResponse(BaseModel):
    location: GeoLocation
    current: CurrentWeather
    forecast: List[ForecastDay]
    farming_recommendations: List[str]
    agricultural_advisory: Optional[AgriculturalAdvisory] = None
    crop_planning_advice: Optional[List[CropPlanningAdvice]] = None
    cached_at: datetime
    is_fallback: bool = False
    # True when an expired cache record was served because the provider failed
    is_stale: bool = False


class FarmingAlert(BaseModel):
    id: str
    type: AlertType
    title: str
    message: str
    severity: Severity
    created_at: datetime


# --- Database Models ---
class WeatherCacheRecord(BaseModel):
    location_key: str
    latitude: float
    longitude: float
    current: CurrentWeather
    forecast: List[ForecastDay]
    farming_recommendations: List[str]
    agricultural_advisory: Optional[AgriculturalAdvisory] = None
    crop_planning_advice: List[CropPlanningAdvice] = []
    cached_at: datetime
    expires_at: datetime


class WeatherAlert(BaseModel):
    id: Optional[str] = None
    user_id: str
    alert_type: AlertType
    title: str
    message: str
    severity: Severity
    location: GeoLocation
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime

    def to_farming_alert(self) -> FarmingAlert:
        return FarmingAlert(
            id=self.id,
            type=self.alert_type,
            title=self.title,
            message=self.message,
            severity=self.severity,
            created_at=self.created_at,
        )


class ServiceStatus(BaseModel):
    status: str  # "connected", "disconnected", "disabled" or "error"
    message: Optional[str] = None


class HealthStatus(BaseModel):
    status: Literal["healthy", "unhealthy"]
    services: dict[str, ServiceStatus]
    circuit_breaker: dict
    timestamp: datetime = Field(default_factory=utc_now)
