"""
Application error types.

Every error raised inside the weather subsystem derives from AppError so the
HTTP layer can map it to a status code. Cache store failures are classified
with handle_redis_error and then degraded, never propagated.
"""
import asyncio

from redis import exceptions as redis_exceptions


class AppError(Exception):
    """Base class for operational errors with an HTTP status and code."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class ExternalServiceError(AppError):
    """An upstream dependency failed, was unreachable or refused the request."""

    def __init__(self, service_name: str, message: str, status_code: int = 502):
        super().__init__(message, status_code, "EXTERNAL_SERVICE_ERROR")
        self.service_name = service_name

    def __str__(self) -> str:
        return f"{self.service_name}: {self.message}"


class OperationTimeoutError(ExternalServiceError):
    def __init__(self, message: str = "Operation timed out"):
        super().__init__("Timeout", message, 408)


class ServiceUnavailableError(ExternalServiceError):
    def __init__(self, service_name: str = "Circuit Breaker", message: str = "Service temporarily unavailable"):
        super().__init__(service_name, message, 503)


class UserLocationNotFoundError(AppError):
    def __init__(self, user_id: str):
        super().__init__(
            "User location not found. Please update your profile with location information.",
            400,
            "USER_LOCATION_NOT_FOUND",
        )
        self.user_id = user_id


class CacheStoreError(AppError):
    def __init__(self, message: str, status_code: int = 500, code: str = "REDIS_ERROR"):
        super().__init__(message, status_code, code)


def handle_redis_error(error: Exception) -> CacheStoreError:
    """Classify a redis client exception for logging."""
    if isinstance(error, (redis_exceptions.TimeoutError, asyncio.TimeoutError)):
        return CacheStoreError("Redis operation timed out", 503, "REDIS_TIMEOUT_ERROR")

    if isinstance(error, (redis_exceptions.ConnectionError, ConnectionRefusedError)):
        return CacheStoreError("Redis connection refused", 503, "REDIS_CONNECTION_ERROR")

    return CacheStoreError(str(error) or "Redis operation failed", 500, "REDIS_ERROR")
