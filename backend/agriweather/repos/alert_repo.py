from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorDatabase

from agriweather.models.weather_model import WeatherAlert

class AlertRepository:
    """Weather alerts are append-only; expiry is applied when reading."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db["weather_alerts"]

    async def ensure_indexes(self):
        await self.collection.create_index([("user_id", 1), ("is_active", 1)])
        await self.collection.create_index([("created_at", -1)])
        await self.collection.create_index([("expires_at", 1)])

    async def insert_alerts(self, alerts: list[WeatherAlert]) -> list[WeatherAlert]:
        if not alerts:
            return []
        docs = [alert.model_dump(exclude={"id"}) for alert in alerts]
        result = await self.collection.insert_many(docs)
        return [
            alert.model_copy(update={"id": str(inserted_id)})
            for alert, inserted_id in zip(alerts, result.inserted_ids)
        ]

    async def find_active_alerts(self, user_id: str, now: datetime) -> list[WeatherAlert]:
        cursor = self.collection.find({
            "user_id": user_id,
            "is_active": True,
            "expires_at": {"$gt": now}
        }).sort("created_at", -1)

        docs = await cursor.to_list(length=None)
        return [WeatherAlert.model_validate({**doc, "id": str(doc["_id"])}) for doc in docs]
