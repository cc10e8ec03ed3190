import logging

import redis.asyncio as redis

from agriweather.core.config import settings
from agriweather.core.logger import logs


class AsyncCacheConnection:
    """
    Manages the asynchronous Redis client used by the cache store.
    The client connects lazily; an unreachable server only shows up as
    failed commands, which the cache store degrades to misses.
    """
    _client: redis.Redis | None = None

    def __init__(self):
        if settings.REDIS_ENABLED:
            if AsyncCacheConnection._client is None:
                AsyncCacheConnection._client = redis.from_url(
                    settings.REDIS_URL,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
                logs.log(logging.INFO, "Redis client initialized")
        else:
            logs.log(logging.INFO, "Redis disabled - weather cache store will always miss")

    def get_client(self) -> redis.Redis | None:
        # Recreated after close() so a restarted app gets a live cache tier
        if settings.REDIS_ENABLED and AsyncCacheConnection._client is None:
            self.__init__()
        return AsyncCacheConnection._client

    async def ping(self) -> tuple[str, str | None]:
        client = self.get_client()
        if client is None:
            return "disconnected", "Redis not configured"
        try:
            await client.ping()
            return "connected", None
        except Exception as e:
            logs.log(logging.WARNING, f"Redis ping failed: {str(e)}")
            return "error", str(e)

    async def close(self):
        if AsyncCacheConnection._client is not None:
            await AsyncCacheConnection._client.aclose()
            AsyncCacheConnection._client = None


cache_connection = AsyncCacheConnection()


def get_redis() -> redis.Redis | None:
    return cache_connection.get_client()
