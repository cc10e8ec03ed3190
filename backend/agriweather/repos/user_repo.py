from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from agriweather.models.weather_model import GeoLocation

class UserRepository:
    """Read-only view of the users collection owned by the account service."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db["users"]

    async def get_user_location(self, user_id: str) -> GeoLocation | None:
        try:
            query_id = ObjectId(user_id)
        except (InvalidId, TypeError):
            query_id = user_id

        user = await self.collection.find_one({"_id": query_id}, {"location": 1})
        if not user or not user.get("location"):
            return None

        location = user["location"]
        if location.get("latitude") is None or location.get("longitude") is None:
            return None
        return GeoLocation(latitude=location["latitude"], longitude=location["longitude"])
