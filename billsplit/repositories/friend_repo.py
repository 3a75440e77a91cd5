from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from billsplit.models.friend import Friend


class FriendRepository:
    """
    Friend lookup table.

    One document per direction of a friendship:
    {owner_id, friend_id, name, email}
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["friends"]

    @staticmethod
    def _to_friend(doc: dict) -> Friend:
        return Friend(
            id=doc["friend_id"],
            name=doc.get("name") or "",
            email=doc.get("email")
        )

    async def list_friends(self, user_id: str) -> List[Friend]:
        """Friends of the user ordered by name."""
        cursor = self.collection.find({"owner_id": user_id}).sort("name", 1)
        docs = await cursor.to_list(None)
        return [self._to_friend(doc) for doc in docs]

    async def get_friend(self, user_id: str, friend_id: str) -> Optional[Friend]:
        doc = await self.collection.find_one({"owner_id": user_id, "friend_id": friend_id})
        if doc:
            return self._to_friend(doc)
        return None

    async def delete_friend(self, user_id: str, friend_id: str) -> int:
        """Remove the friendship in both directions. Returns documents removed."""
        result = await self.collection.delete_many({
            "$or": [
                {"owner_id": user_id, "friend_id": friend_id},
                {"owner_id": friend_id, "friend_id": user_id}
            ]
        })
        return result.deleted_count
