from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.config import settings
from app.db import get_session
from app.auth_deps import get_current_user, require_role
from app.models.user import UserProfile
from app.models.wallet import Payout
from app.routes.wallet import page_params
from app.schemas.wallet import PayoutRequest, PayoutPublic, PayoutPage
from app.services.wallet import request_payout, list_payouts, InsufficientFunds

router = APIRouter(prefix="/payouts", tags=["payouts"])
log = structlog.get_logger()


@router.get("", response_model=PayoutPage)
async def payouts(
    limit: int | None = None,
    offset: int | None = None,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
):
    limit, offset, page = page_params(limit, offset)
    rows = await list_payouts(session, user.user_id, limit=limit, offset=offset)
    total = await session.scalar(select(func.count()).select_from(Payout).where(Payout.user_id == user.user_id))
    return PayoutPage(items=[PayoutPublic.model_validate(r) for r in rows], total=int(total or 0), page=page, limit=limit)


@router.post("/create", response_model=PayoutPublic, status_code=201)
async def create_payout(
    payload: PayoutRequest,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(require_role("creator")),
):
    if payload.amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be greater than 0")
    if payload.amount < settings.min_payout_usd:
        raise HTTPException(status_code=400, detail=f"Minimum payout amount is ${settings.min_payout_usd:g}")

    try:
        payout = await request_payout(session, user_id=user.user_id, amount=payload.amount, payout_method=payload.payout_method)
    except InsufficientFunds as e:
        await session.rollback()
        raise HTTPException(status_code=402, detail=f"Insufficient earnings. {e}")

    await session.commit()
    await session.refresh(payout)
    log.info("payout_requested", user_id=user.user_id, payout_id=str(payout.id), amount=payload.amount)
    return PayoutPublic.model_validate(payout)
