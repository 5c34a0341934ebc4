"""
Database configuration and connection management for MongoDB
"""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from hotel_app.config.settings import settings

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """MongoDB connection handle.

    Built by the process entry point and passed to every service; nothing in
    the package reaches for a module-level connection.
    """

    def __init__(self, mongo_uri: str = None, database_name: str = None):
        self.MONGO_URI = mongo_uri or settings.MONGO_URI
        self.DATABASE_NAME = database_name or settings.DATABASE_NAME
        self.client: Optional[AsyncIOMotorClient] = None
        self.database = None

    @classmethod
    def from_client(cls, client, database_name: str) -> "DatabaseConfig":
        """Wrap an already constructed client (used by tests and scripts)"""
        config = cls(database_name=database_name)
        config.client = client
        config.database = client[database_name]
        return config

    async def connect_db(self):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(self.MONGO_URI)
            self.database = self.client[self.DATABASE_NAME]
            # Test connection
            await self.client.admin.command('ping')
            logger.info("✅ Connected to MongoDB: %s", self.DATABASE_NAME)
        except Exception:
            logger.exception("❌ Error connecting to MongoDB")
            raise

    async def close_db(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("✅ MongoDB connection closed")

    def get_collection(self, collection_name: str):
        """Get a specific collection"""
        if self.database is None:
            raise RuntimeError("Database not connected")
        return self.database[collection_name]

    async def ensure_indexes(self):
        """Create unique and query indexes used by the booking core"""
        rooms = self.get_collection(Collections.ROOMS)
        await rooms.create_index("room_number", unique=True)
        await rooms.create_index([("room_type_slug", ASCENDING), ("status", ASCENDING)])
        await rooms.create_index([("room_type_id", ASCENDING), ("is_active", ASCENDING)])

        room_types = self.get_collection(Collections.ROOM_TYPES)
        await room_types.create_index("slug", unique=True)

        users = self.get_collection(Collections.USERS)
        await users.create_index("email", unique=True)

        bookings = self.get_collection(Collections.BOOKINGS)
        await bookings.create_index([("booking_status", ASCENDING), ("check_in", ASCENDING)])
        await bookings.create_index([("payment_status", ASCENDING), ("created_at", DESCENDING)])
        await bookings.create_index([("guest_email", ASCENDING), ("created_at", DESCENDING)])
        await bookings.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        await bookings.create_index([("check_in", ASCENDING), ("check_out", ASCENDING)])


# Collection names
class Collections:
    BOOKINGS = "bookings"
    ROOMS = "rooms"
    ROOM_TYPES = "room_types"
    USERS = "users"
