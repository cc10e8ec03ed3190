from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from agriweather.core.config import settings
from agriweather.core.logger import logs
import logging

class AsyncDBConnection:
    """
    Manages the asynchronous connection to the MongoDB database.
    Only used when STORAGE_MODE=mongodb
    """
    _client: AsyncIOMotorClient | None = None

    def __init__(self):
        if settings.STORAGE_MODE == "mongodb":
            if AsyncDBConnection._client is None:
                # tz_aware so cached_at/expires_at come back comparable with utc_now()
                AsyncDBConnection._client = AsyncIOMotorClient(settings.MONGO_URI, tz_aware=True)
                logs.log(logging.INFO, "MongoDB connection initialized")
        else:
            logs.log(logging.INFO, "Using local file storage - MongoDB not initialized")

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Returns the async database instance.
        Only available when STORAGE_MODE=mongodb
        """
        if settings.STORAGE_MODE != "mongodb":
            raise RuntimeError("MongoDB not available - STORAGE_MODE is set to 'local'")

        if AsyncDBConnection._client is None:
            self.__init__()

        client = AsyncDBConnection._client
        return client[settings.MONGO_DB_NAME]

    async def ping(self) -> tuple[str, str | None]:
        """Returns (status, message) for the health endpoint."""
        if settings.STORAGE_MODE != "mongodb":
            return "disabled", "Using local file storage"
        try:
            await self.get_database().command("ping")
            return "connected", None
        except Exception as e:
            logs.log(logging.WARNING, f"MongoDB ping failed: {str(e)}")
            return "error", str(e)

    def close(self):
        if AsyncDBConnection._client is not None:
            AsyncDBConnection._client.close()
            AsyncDBConnection._client = None

# Instantiate the connection manager
db_connection = AsyncDBConnection()

# Dependency for FastAPI
async def get_db() -> AsyncIOMotorDatabase:
    if settings.STORAGE_MODE != "mongodb":
        raise RuntimeError("MongoDB not available - using local storage")
    return db_connection.get_database()
