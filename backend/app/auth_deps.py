from __future__ import annotations
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import jwt
import structlog
from app.db import get_session
from app.security import decode_session_token
from app.models.user import UserProfile

security = HTTPBearer(auto_error=False)
log = structlog.get_logger()

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> UserProfile:
    """Resolve the bearer token to a profile, creating the profile on first sight."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing access token")
    try:
        data = decode_session_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = data["sub"]
    user = await session.get(UserProfile, user_id)
    if user is None:
        user = UserProfile(
            user_id=user_id,
            email=data.get("email"),
            username=data.get("username"),
            total_earnings=0,
            wallet_balance=0,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        log.info("user_profile_created", user_id=user_id)
    return user

def require_role(role: str):
    async def _dep(user: UserProfile = Depends(get_current_user)) -> UserProfile:
        if user.role != role:
            raise HTTPException(status_code=403, detail=f"Forbidden. Only {role} accounts can do this.")
        return user
    return _dep
