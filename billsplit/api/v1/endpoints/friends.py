import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from billsplit.core.auth import get_current_user
from billsplit.db.mongo import get_db
from billsplit.models.friend import Friend
from billsplit.models.user import UserResponse
from billsplit.repositories.friend_repo import FriendRepository

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("", response_model=List[Friend])
async def list_friends(
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """List the user's friends by name."""
    return await FriendRepository(db).list_friends(current_user.id)

@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_friend(
    friend_id: str,
    current_user: UserResponse = Depends(get_current_user),
    db = Depends(get_db)
):
    """Remove a friend in both directions."""
    if friend_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove yourself"
        )

    removed = await FriendRepository(db).delete_friend(current_user.id, friend_id)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Friend not found"
        )
    logger.info("User %s removed friend %s", current_user.id, friend_id)
