import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from agriweather.core.cache_connection import cache_connection
from agriweather.core.config import settings
from agriweather.core.db_connection import db_connection
from agriweather.core.errors import AppError
from agriweather.core.logger import logs
from agriweather.models.weather_model import HealthStatus, ServiceStatus
from agriweather.repos.alert_repo import AlertRepository
from agriweather.repos.cache_repo import WeatherCacheStore
from agriweather.repos.local_repo import LocalRepository
from agriweather.repos.user_repo import UserRepository
from agriweather.repos.weather_repo import WeatherRepository
from agriweather.routes.weather_route import router as weather_router
from agriweather.services.Alert_service import AlertService
from agriweather.services.Weather_client import WeatherClient
from agriweather.services.Weather_service import WeatherService


def build_repositories():
    """Returns (weather_repo, alert_repo, user_repo) for the configured storage mode."""
    if settings.STORAGE_MODE == "local":
        repo = LocalRepository(settings.LOCAL_DATA_DIR)
        return repo, repo, repo

    db = db_connection.get_database()
    return WeatherRepository(db), AlertRepository(db), UserRepository(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    weather_repo, alert_repo, user_repo = build_repositories()
    try:
        await weather_repo.ensure_indexes()
        await alert_repo.ensure_indexes()
    except Exception as e:
        logs.log(logging.WARNING, f"Could not create indexes: {str(e)}")

    cache = WeatherCacheStore(cache_connection.get_client())
    client = WeatherClient(
        api_key=settings.WEATHER_API_KEY,
        base_url=settings.WEATHER_API_URL,
        request_timeout=settings.WEATHER_REQUEST_TIMEOUT,
        operation_timeout=settings.WEATHER_OPERATION_TIMEOUT,
    )

    app.state.weather_service = WeatherService(weather_repo, cache, client, user_repo=user_repo)
    app.state.alert_service = AlertService(app.state.weather_service, alert_repo, user_repo, cache)
    logs.log(logging.INFO, f"Weather services ready (storage={settings.STORAGE_MODE})")

    yield

    await client.aclose()
    await cache_connection.close()
    db_connection.close()


app = FastAPI(title="Farmer Weather Service", lifespan=lifespan)
app.include_router(weather_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, error: AppError):
    logs.log(logging.WARNING, f"{request.method} {request.url.path} failed: {error.code} {error.message}")
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": {"code": error.code, "message": error.message}},
    )


# --- Root Endpoint ---
@app.get("/")
async def root():
    return {
        "message": "Welcome to Farmer Weather API",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "forecast": "/weather/forecast/{lat}/{lon}",
            "alerts": "/weather/alerts/{user_id}",
            "docs": "/docs"
        },
        "version": "1.0.0"
    }


# --- Health Check ---
@app.get("/health", response_model=HealthStatus)
async def health_check(request: Request):
    mongo_status, mongo_message = await db_connection.ping()
    redis_status, redis_message = await cache_connection.ping()

    # Redis is optional, only the durable store decides overall health
    healthy = mongo_status in ("connected", "disabled")
    return HealthStatus(
        status="healthy" if healthy else "unhealthy",
        services={
            "mongodb": ServiceStatus(status=mongo_status, message=mongo_message),
            "redis": ServiceStatus(status=redis_status, message=redis_message),
        },
        circuit_breaker=request.app.state.weather_service.circuit_state(),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("agriweather.main:app", host="0.0.0.0", port=8000, reload=True)
