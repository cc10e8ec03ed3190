from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Storage mode: "mongodb" or "local"
    STORAGE_MODE: str = "mongodb"

    # MongoDB Configuration (only needed if STORAGE_MODE=mongodb)
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "farmer_app"

    # Local JSON storage (only needed if STORAGE_MODE=local)
    LOCAL_DATA_DIR: str = "data"

    # Redis cache
    REDIS_ENABLED: bool = True
    REDIS_URL: str = "redis://localhost:6379"

    LOGGER: int = 20
    LOG_DIRECTORY: str = "logs"

    # OpenWeather Configuration
    WEATHER_API_KEY: str = ""
    WEATHER_API_URL: str = "https://api.openweathermap.org/data/2.5"
    WEATHER_REQUEST_TIMEOUT: float = 5.0
    WEATHER_OPERATION_TIMEOUT: float = 10.0

    # Cache lifetimes (seconds)
    CACHE_DURATION: int = 3600
    ALERT_CACHE_TTL: int = 86400

    ALERT_DURATION_HOURS: int = 24

    # Circuit breaker around the weather provider
    CIRCUIT_FAILURE_THRESHOLD: int = 3
    CIRCUIT_RECOVERY_TIMEOUT: float = 30.0

    model_config = SettingsConfigDict(
        # Look for .env in the current folder OR the parent folder
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
