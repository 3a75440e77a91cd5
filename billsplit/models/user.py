from pydantic import BaseModel, EmailStr, Field, ConfigDict
from datetime import datetime
from typing import Optional
from bson import ObjectId

class UserResponse(BaseModel):
    """Authenticated user as seen by the endpoints."""
    id: str
    name: str
    email: Optional[EmailStr] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

class UserInDB(BaseModel):
    """User database schema."""
    id: ObjectId = Field(alias="_id")
    name: str = ""
    email: Optional[str] = None
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        arbitrary_types_allowed=True
    )
