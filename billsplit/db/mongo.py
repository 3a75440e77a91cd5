import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from billsplit.core.config import settings

logger = logging.getLogger(__name__)

class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URI)
    mongodb.db = mongodb.client[settings.MONGODB_DB]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.MONGODB_DB)

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    # Bills are read by payer or by participant, newest first
    await mongodb.db["bills"].create_index("paid_by")
    await mongodb.db["bills"].create_index("split_among")
    await mongodb.db["bills"].create_index([("timestamp", -1)])

    # Friend lookup table per user
    await mongodb.db["friends"].create_index(
        [("owner_id", 1), ("friend_id", 1)], unique=True
    )
    await mongodb.db["friends"].create_index([("owner_id", 1), ("name", 1)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
