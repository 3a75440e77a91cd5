from typing import Optional
from pydantic import BaseModel


class Friend(BaseModel):
    """A friend of the current user, used as an id -> display name lookup."""
    id: str
    name: str
    email: Optional[str] = None
