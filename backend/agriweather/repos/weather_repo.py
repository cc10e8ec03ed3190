from motor.motor_asyncio import AsyncIOMotorDatabase

from agriweather.models.weather_model import WeatherCacheRecord

class WeatherRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db["weather_cache"]

    async def ensure_indexes(self):
        await self.collection.create_index("location_key", unique=True)
        await self.collection.create_index([("latitude", 1), ("longitude", 1)])
        await self.collection.create_index([("cached_at", -1)])

    async def get_cache(self, location_key: str) -> WeatherCacheRecord | None:
        """
        Returns the record for this key regardless of age.
        Freshness is decided by the caller from cached_at.
        """
        doc = await self.collection.find_one({"location_key": location_key})
        if doc is None:
            return None
        return WeatherCacheRecord.model_validate(doc)

    async def save_cache(self, record: WeatherCacheRecord):
        """
        Upserts (Update or Insert) the weather record.
        """
        await self.collection.update_one(
            {"location_key": record.location_key},
            {"$set": record.model_dump()},
            upsert=True
        )

    async def delete_cache(self, location_key: str):
        await self.collection.delete_one({"location_key": location_key})
