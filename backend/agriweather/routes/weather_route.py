from fastapi import APIRouter, Depends, Path, Request

from agriweather.models.weather_model import FarmingAlert, GeoLocation, WeatherRequest, WeatherResponse
from agriweather.services.Alert_service import AlertService
from agriweather.services.Weather_service import WeatherService

router = APIRouter(prefix="/weather", tags=["weather"])

# --- Dependency Injection ---
def get_weather_service(request: Request) -> WeatherService:
    return request.app.state.weather_service

def get_alert_service(request: Request) -> AlertService:
    return request.app.state.alert_service

def get_location(
    lat: float = Path(..., ge=-90, le=90),
    lon: float = Path(..., ge=-180, le=180),
) -> GeoLocation:
    return GeoLocation(latitude=lat, longitude=lon)

@router.get("/forecast/user/{user_id}", response_model=WeatherResponse)
async def get_user_forecast_endpoint(
    user_id: str,
    service: WeatherService = Depends(get_weather_service)
):
    return await service.get_forecast_for_user(user_id)

@router.get("/forecast/{lat}/{lon}", response_model=WeatherResponse)
async def get_forecast_endpoint(
    location: GeoLocation = Depends(get_location),
    service: WeatherService = Depends(get_weather_service)
):
    return await service.get_forecast(location)

@router.post("", response_model=WeatherResponse)
async def get_weather_endpoint(
    request: WeatherRequest,
    service: WeatherService = Depends(get_weather_service)
):
    return await service.get_forecast(GeoLocation(latitude=request.lat, longitude=request.lon))

@router.get("/alerts/{user_id}", response_model=list[FarmingAlert])
async def get_alerts_endpoint(
    user_id: str,
    service: AlertService = Depends(get_alert_service)
):
    return await service.get_user_alerts(user_id)

@router.post("/alerts/{user_id}/generate", response_model=list[FarmingAlert])
async def generate_alerts_endpoint(
    user_id: str,
    service: AlertService = Depends(get_alert_service)
):
    return await service.generate_farming_alerts(user_id)

@router.delete("/cache/{lat}/{lon}")
async def invalidate_cache_endpoint(
    location: GeoLocation = Depends(get_location),
    service: WeatherService = Depends(get_weather_service)
):
    await service.invalidate_cache(location)
    return {"success": True}
