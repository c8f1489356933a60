from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.db import get_session
from app.auth_deps import get_current_user, require_role
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.models.user import UserProfile
from app.schemas.analytics import CreatorAnalyticsResponse, BusinessAnalyticsResponse
from app.services.analytics import normalize_range, date_bounds, in_range, creator_analytics, business_analytics

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/creator", response_model=CreatorAnalyticsResponse)
async def creator(
    date_range: str | None = Query("30d"),
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
):
    rng = normalize_range(date_range)
    start, end = date_bounds(rng)
    rows = (await session.execute(
        select(Submission, Bounty.name)
        .join(Bounty, Bounty.id == Submission.bounty_id)
        .where(Submission.user_id == user.user_id)
    )).all()
    subs = [s for s, _ in rows if in_range(s.created_at, start, end)]
    names = {s.bounty_id: name for s, name in rows}
    return CreatorAnalyticsResponse(
        data=creator_analytics(subs, names), date_range=rng, period_start=start, period_end=end
    )


@router.get("/business", response_model=BusinessAnalyticsResponse)
async def business(
    date_range: str | None = Query("30d"),
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(require_role("business")),
):
    rng = normalize_range(date_range)
    start, end = date_bounds(rng)
    bounties = (await session.execute(
        select(Bounty).where(Bounty.creator_id == user.user_id).order_by(Bounty.created_at.asc())
    )).scalars().all()
    return BusinessAnalyticsResponse(
        data=business_analytics(b for b in bounties if in_range(b.created_at, start, end)),
        date_range=rng,
        period_start=start,
        period_end=end,
    )
