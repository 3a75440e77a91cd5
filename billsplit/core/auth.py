from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer
from billsplit.core.config import settings
from billsplit.db.mongo import get_db
from billsplit.repositories.user_repo import UserRepository
from billsplit.models.user import UserResponse

security = HTTPBearer()

def decode_access_token(token: str) -> str:
    """Return the user id carried by a token, or raise 401."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )
    return user_id

async def get_current_user(
    credentials = Depends(security),
    db = Depends(get_db)
) -> UserResponse:
    """Get current user from JWT token."""
    user_id = decode_access_token(credentials.credentials)

    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return UserResponse(
        id=str(user.id),
        name=user.name,
        email=user.email
    )
