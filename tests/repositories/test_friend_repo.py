"""Tests for friend and user lookups."""
import pytest
from unittest.mock import MagicMock
from bson import ObjectId

from billsplit.repositories.friend_repo import FriendRepository
from billsplit.repositories.user_repo import UserRepository


@pytest.mark.asyncio
class TestFriendRepository:
    """Test FriendRepository against a mocked collection."""

    async def test_list_friends(self, mock_db, ids):
        """Test friends are read for the owner and sorted by name."""
        cursor = mock_db["friends"].find.return_value
        cursor.to_list.return_value = [
            {"owner_id": ids["alice"], "friend_id": ids["bob"], "name": "Bob"},
            {"owner_id": ids["alice"], "friend_id": ids["carol"], "name": None,
             "email": "carol@example.com"},
        ]

        friends = await FriendRepository(mock_db).list_friends(ids["alice"])

        assert [f.id for f in friends] == [ids["bob"], ids["carol"]]
        assert friends[0].name == "Bob"
        assert friends[1].name == ""
        assert friends[1].email == "carol@example.com"
        mock_db["friends"].find.assert_called_once_with({"owner_id": ids["alice"]})
        cursor.sort.assert_called_once_with("name", 1)

    async def test_get_friend(self, mock_db, ids):
        mock_db["friends"].find_one.return_value = {
            "owner_id": ids["alice"], "friend_id": ids["bob"], "name": "Bob"
        }

        friend = await FriendRepository(mock_db).get_friend(ids["alice"], ids["bob"])

        assert friend.id == ids["bob"]
        mock_db["friends"].find_one.assert_awaited_once_with(
            {"owner_id": ids["alice"], "friend_id": ids["bob"]}
        )

    async def test_get_friend_not_found(self, mock_db, ids):
        assert await FriendRepository(mock_db).get_friend(ids["alice"], ids["bob"]) is None

    async def test_delete_friend_both_directions(self, mock_db, ids):
        mock_db["friends"].delete_many.return_value = MagicMock(deleted_count=2)

        removed = await FriendRepository(mock_db).delete_friend(ids["alice"], ids["bob"])

        assert removed == 2
        query = mock_db["friends"].delete_many.call_args[0][0]
        assert {"owner_id": ids["alice"], "friend_id": ids["bob"]} in query["$or"]
        assert {"owner_id": ids["bob"], "friend_id": ids["alice"]} in query["$or"]


@pytest.mark.asyncio
class TestUserRepository:
    """Test UserRepository lookups."""

    async def test_get_user_by_id_found(self, mock_db, ids):
        mock_db["users"].find_one.return_value = {
            "_id": ObjectId(ids["alice"]), "name": "Alice", "email": "alice@example.com"
        }

        user = await UserRepository(mock_db).get_user_by_id(ids["alice"])

        assert str(user.id) == ids["alice"]
        assert user.name == "Alice"
        mock_db["users"].find_one.assert_awaited_once_with(
            {"_id": ObjectId(ids["alice"]), "is_deleted": {"$ne": True}}
        )

    async def test_get_user_by_id_invalid(self, mock_db):
        assert await UserRepository(mock_db).get_user_by_id("invalid_id") is None
        mock_db["users"].find_one.assert_not_called()

    async def test_get_user_by_id_missing(self, mock_db, ids):
        assert await UserRepository(mock_db).get_user_by_id(ids["bob"]) is None
