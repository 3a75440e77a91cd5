import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from jose import jwt

from billsplit.main import app
from billsplit.core.auth import get_current_user
from billsplit.core.config import settings
from billsplit.db.mongo import get_db
from billsplit.models.bill import Bill
from billsplit.models.user import UserResponse

# Participant ids look like the user ids issued by the identity provider
ALICE_ID = "507f1f77bcf86cd799439011"
BOB_ID = "507f1f77bcf86cd799439012"
CAROL_ID = "507f1f77bcf86cd799439013"


def _collection_mock() -> MagicMock:
    """A motor collection whose awaitable methods are AsyncMocks."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))

    # find(...).sort(...).to_list(None)
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor
    return collection


@pytest.fixture
def mock_db():
    """Database mock handing out one collection mock per name."""
    db = MagicMock()
    collections = {}

    def _get_collection(name):
        if name not in collections:
            collections[name] = _collection_mock()
        return collections[name]

    db.__getitem__.side_effect = _get_collection
    return db


@pytest.fixture
def ids():
    return {"alice": ALICE_ID, "bob": BOB_ID, "carol": CAROL_ID}


@pytest.fixture
def make_bill():
    """Build a Bill with sensible defaults: Alice paid 90 split three ways."""
    def _make(**overrides) -> Bill:
        data = {
            "description": "Dinner",
            "amount": 90,
            "paid_by": ALICE_ID,
            "paid_by_name": "Alice",
            "split_among": [ALICE_ID, BOB_ID, CAROL_ID],
            "split_type": "equal",
        }
        data.update(overrides)
        split_among = data["split_among"]
        data.setdefault("paid_status", {p: p == data["paid_by"] for p in split_among})
        data.setdefault("pending_status", {p: False for p in split_among})
        return Bill(**data)

    return _make


@pytest.fixture
def make_token():
    """Mint a bearer token the way the identity provider does."""
    def _make(user_id, expires_delta=timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)):
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "exp": int((now + expires_delta).timestamp()),
            "iat": int(now.timestamp())
        }
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    return _make


@pytest.fixture
def current_user():
    return UserResponse(id=ALICE_ID, name="Alice", email="alice@example.com")


@pytest.fixture
def client(current_user, mock_db):
    """Test client with auth and database dependencies overridden."""
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
