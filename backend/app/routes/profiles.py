from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.db import get_session
from app.auth_deps import get_current_user
from app.models.user import UserProfile
from app.models.submission import Submission
from app.schemas.user import UserProfilePublic, SetRoleRequest, LeaderboardRow, UserStats

router = APIRouter(tags=["profiles"])
log = structlog.get_logger()

ROLES = ("creator", "business")


@router.api_route("/sync-user-profile", methods=["GET", "POST"], response_model=UserProfilePublic)
async def sync_user_profile(user: UserProfile = Depends(get_current_user)):
    # get_current_user already creates the row on first sight
    return UserProfilePublic.model_validate(user)


@router.get("/me", response_model=UserProfilePublic)
async def me(user: UserProfile = Depends(get_current_user)):
    return UserProfilePublic.model_validate(user)


@router.post("/onboarding/set-role", response_model=UserProfilePublic)
async def set_role(
    payload: SetRoleRequest,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
):
    if payload.role not in ROLES:
        raise HTTPException(status_code=400, detail='Invalid role. Must be "creator" or "business"')
    if user.role and user.role != payload.role:
        raise HTTPException(status_code=409, detail=f"Role already set to {user.role}")

    if user.role != payload.role:
        user.role = payload.role
        await session.commit()
        await session.refresh(user)
        log.info("role_set", user_id=user.user_id, role=payload.role)
    return UserProfilePublic.model_validate(user)


@router.get("/users/leaderboard", response_model=list[LeaderboardRow])
async def leaderboard(limit: int = Query(10, ge=1, le=100), session: AsyncSession = Depends(get_session)):
    rows = (await session.execute(
        select(UserProfile)
        .where(UserProfile.total_earnings > 0)
        .order_by(UserProfile.total_earnings.desc())
        .limit(limit)
    )).scalars().all()
    return [LeaderboardRow(user_id=u.user_id, username=u.username, total_earnings=float(u.total_earnings)) for u in rows]


@router.get("/users/me/stats", response_model=UserStats)
async def my_stats(session: AsyncSession = Depends(get_session), user: UserProfile = Depends(get_current_user)):
    counts = dict((await session.execute(
        select(Submission.status, func.count()).where(Submission.user_id == user.user_id).group_by(Submission.status)
    )).all())
    return UserStats(
        total_earnings=float(user.total_earnings or 0),
        total_submissions=sum(counts.values()),
        pending_submissions=counts.get("pending", 0),
        approved_submissions=counts.get("approved", 0),
        rejected_submissions=counts.get("rejected", 0),
    )
