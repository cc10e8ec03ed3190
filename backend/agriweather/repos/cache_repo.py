import json
import logging
from typing import Any

import redis.asyncio as redis

from agriweather.core.config import settings
from agriweather.core.errors import handle_redis_error
from agriweather.core.logger import logs


class CacheStore:
    """
    JSON key-value store with TTL on top of Redis.

    Never raises: a missing client, a dropped connection or an unserializable
    value all degrade to a miss (None) or a failed write (False).
    """

    def __init__(self, client: redis.Redis | None, default_ttl: int = 3600):
        self.client = client
        self.default_ttl = default_ttl

    async def get(self, key: str) -> Any | None:
        if self.client is None:
            logs.log(logging.DEBUG, f"Redis not connected, cache miss for key: {key}")
            return None
        try:
            value = await self.client.get(key)
            if not value:
                return None
            return json.loads(value)
        except Exception as e:
            logs.log(logging.ERROR, f"Cache get error: {handle_redis_error(e).message}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if self.client is None:
            logs.log(logging.DEBUG, f"Redis not connected, skipping cache set for key: {key}")
            return False
        try:
            await self.client.setex(key, ttl or self.default_ttl, json.dumps(value, default=str))
            return True
        except Exception as e:
            logs.log(logging.ERROR, f"Cache set error: {handle_redis_error(e).message}")
            return False

    async def delete(self, key: str) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.delete(key)
            return True
        except Exception as e:
            logs.log(logging.ERROR, f"Cache delete error: {handle_redis_error(e).message}")
            return False

    async def exists(self, key: str) -> bool:
        if self.client is None:
            return False
        try:
            return await self.client.exists(key) == 1
        except Exception as e:
            logs.log(logging.ERROR, f"Cache exists error: {handle_redis_error(e).message}")
            return False

    async def flush(self) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.flushdb()
            return True
        except Exception as e:
            logs.log(logging.ERROR, f"Cache flush error: {handle_redis_error(e).message}")
            return False

    @staticmethod
    def generate_key(prefix: str, *parts) -> str:
        return ":".join([prefix, *(str(p) for p in parts)])


class WeatherCacheStore(CacheStore):
    """Weather records and per-user alert lists, each with its own TTL."""

    def __init__(
        self,
        client: redis.Redis | None,
        weather_ttl: int = settings.CACHE_DURATION,
        alert_ttl: int = settings.ALERT_CACHE_TTL,
    ):
        super().__init__(client, default_ttl=weather_ttl)
        self.weather_ttl = weather_ttl
        self.alert_ttl = alert_ttl

    async def get_weather_data(self, location_key: str) -> dict | None:
        return await self.get(self.generate_key("weather", location_key))

    async def set_weather_data(self, location_key: str, data: dict, ttl: int | None = None) -> bool:
        return await self.set(self.generate_key("weather", location_key), data, ttl or self.weather_ttl)

    async def get_user_alerts(self, user_id: str) -> list | None:
        return await self.get(self.generate_key("alerts", user_id))

    async def set_user_alerts(self, user_id: str, alerts: list) -> bool:
        return await self.set(self.generate_key("alerts", user_id), alerts, self.alert_ttl)

    async def invalidate_weather_cache(self, location_key: str):
        await self.delete(self.generate_key("weather", location_key))

    async def invalidate_user_alerts(self, user_id: str):
        await self.delete(self.generate_key("alerts", user_id))
