from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId

from billsplit.models.user import UserInDB

class UserRepository:
    """User lookups. Account creation lives with the identity provider."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    async def get_user_by_id(self, user_id: str) -> UserInDB | None:
        """Get user by ID; invalid or deleted users read as missing."""
        if not ObjectId.is_valid(user_id):
            return None
        user = await self.collection.find_one({
            "_id": ObjectId(user_id),
            "is_deleted": {"$ne": True}
        })
        if user:
            return UserInDB(**user)
        return None
