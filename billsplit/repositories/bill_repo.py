"""
BillRepository - storage of bill documents.

Writes are last-write-wins at document granularity. Status maps are only
ever written as complete replacement maps (see replace_status_maps), so two
clients flipping different participants' flags cannot leave a half-merged
map behind as long as each one read the latest bill first.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from billsplit.models.bill import Bill


class BillRepository:
    """Bill database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["bills"]

    @staticmethod
    def _to_document(bill: Bill) -> Dict[str, Any]:
        doc = bill.model_dump(exclude={"id"})
        doc["split_type"] = bill.split_type.value
        return doc

    async def insert_bill(self, bill: Bill) -> Bill:
        """Insert a new bill and return it with its generated id."""
        result = await self.collection.insert_one(self._to_document(bill))
        return bill.model_copy(update={"id": str(result.inserted_id)})

    async def get_bill(self, bill_id: str) -> Optional[Bill]:
        """Get a bill by id; invalid ids read as missing."""
        if not ObjectId.is_valid(bill_id):
            return None
        doc = await self.collection.find_one({"_id": ObjectId(bill_id)})
        if doc:
            return Bill(**doc)
        return None

    async def list_bills_for_user(self, user_id: str) -> List[Bill]:
        """Bills where the user is the payer or a participant, newest first."""
        cursor = self.collection.find({
            "$or": [
                {"paid_by": user_id},
                {"split_among": user_id}
            ]
        }).sort("timestamp", -1)

        docs = await cursor.to_list(None)
        return [Bill(**doc) for doc in docs]

    async def update_bill(self, bill_id: str, fields: Dict[str, Any]) -> Optional[Bill]:
        """Apply a partial patch. Returns the updated bill or None if missing."""
        if not ObjectId.is_valid(bill_id):
            return None
        result = await self.collection.find_one_and_update(
            {"_id": ObjectId(bill_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return Bill(**result)
        return None

    async def replace_status_maps(
        self,
        bill_id: str,
        paid_status: Dict[str, bool],
        pending_status: Dict[str, bool]
    ) -> bool:
        """
        Overwrite both status maps in a single write.

        Callers pass the full merged maps, never a single participant's flag.
        Returns False when the bill no longer exists.
        """
        if not ObjectId.is_valid(bill_id):
            return False
        result = await self.collection.update_one(
            {"_id": ObjectId(bill_id)},
            {
                "$set": {
                    "paid_status": dict(paid_status),
                    "pending_status": dict(pending_status)
                }
            }
        )
        return result.matched_count > 0

    async def delete_bill(self, bill_id: str) -> bool:
        if not ObjectId.is_valid(bill_id):
            return False
        result = await self.collection.delete_one({"_id": ObjectId(bill_id)})
        return result.deleted_count > 0
