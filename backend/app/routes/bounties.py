from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.db import get_session
from app.auth_deps import get_current_user, require_role
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.models.user import UserProfile
from app.schemas.bounty import BountyCreate, BountyUpdate, BountyWithProgress, BountyDeleted
from app.schemas.submission import SubmissionWithSubmitter, SubmissionPublic
from app.schemas.user import SubmitterPublic
from app.services.progress import compute_bounty_progress
from app.services.wallet import charge_wallet, credit_wallet, InsufficientFunds

router = APIRouter(prefix="/bounties", tags=["bounties"])
log = structlog.get_logger()


def with_progress(b: Bounty) -> BountyWithProgress:
    return BountyWithProgress.build(b, compute_bounty_progress(b, b.submissions))


async def get_bounty_or_404(session: AsyncSession, bounty_id: UUID) -> Bounty:
    b = await session.get(Bounty, bounty_id)
    if not b:
        raise HTTPException(status_code=404, detail="Bounty not found")
    return b


def _ensure_owner(b: Bounty, user: UserProfile) -> None:
    if b.creator_id != user.user_id:
        raise HTTPException(status_code=403, detail="Only the bounty owner can do this")


@router.get("", response_model=list[BountyWithProgress])
async def list_bounties(
    creator_id: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
):
    q = select(Bounty).order_by(Bounty.created_at.desc())
    if creator_id:
        q = q.where(Bounty.creator_id == creator_id)
    rows = (await session.execute(q)).scalars().all()
    return [with_progress(b) for b in rows]


@router.get("/{bounty_id}", response_model=BountyWithProgress)
async def get_bounty(bounty_id: UUID, session: AsyncSession = Depends(get_session)):
    return with_progress(await get_bounty_or_404(session, bounty_id))


@router.post("", response_model=BountyWithProgress, status_code=201)
async def create_bounty(
    payload: BountyCreate,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(require_role("business")),
):
    b = Bounty(
        creator_id=user.user_id,
        name=payload.name,
        description=payload.description,
        instructions=payload.instructions,
        total_bounty=payload.total_bounty,
        rate_per_1k_views=payload.rate_per_1k_views,
        logo_url=payload.logo_url,
        company_name=payload.company_name,
        submissions=[],
    )
    session.add(b)
    await session.flush()  # get b.id for the charge metadata

    try:
        await charge_wallet(
            session,
            user_id=user.user_id,
            amount=payload.total_bounty,
            metadata={"bounty_id": str(b.id), "bounty_name": b.name},
        )
    except InsufficientFunds as e:
        await session.rollback()
        raise HTTPException(status_code=402, detail=f"Insufficient wallet balance: {e}")

    await session.commit()
    await session.refresh(b)
    log.info("bounty_created", bounty_id=str(b.id), creator_id=user.user_id, total=payload.total_bounty)
    return with_progress(b)


@router.patch("/{bounty_id}", response_model=BountyWithProgress)
async def update_bounty(
    bounty_id: UUID,
    payload: BountyUpdate,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
):
    b = await get_bounty_or_404(session, bounty_id)
    _ensure_owner(b, user)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if field in ("name", "description") and (value is None or not value.strip()):
            raise HTTPException(status_code=400, detail=f"{field} must not be empty")
        setattr(b, field, value)
    await session.commit()
    await session.refresh(b, ["updated_at"])
    return with_progress(b)


@router.delete("/{bounty_id}", response_model=BountyDeleted)
async def delete_bounty(
    bounty_id: UUID,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
):
    b = await get_bounty_or_404(session, bounty_id)
    _ensure_owner(b, user)

    progress = compute_bounty_progress(b, b.submissions)
    unspent = round(float(b.total_bounty) - progress.capped_used_budget, 2)
    await credit_wallet(
        session,
        user_id=user.user_id,
        amount=unspent,
        tx_type="bounty_refund",
        metadata={"bounty_id": str(b.id), "bounty_name": b.name},
    )
    await session.delete(b)
    await session.commit()
    log.info("bounty_deleted", bounty_id=str(bounty_id), refunded=max(unspent, 0.0))
    return BountyDeleted(id=bounty_id, refunded=max(unspent, 0.0))


@router.get("/{bounty_id}/submissions", response_model=list[SubmissionWithSubmitter])
async def bounty_submissions(bounty_id: UUID, session: AsyncSession = Depends(get_session)):
    await get_bounty_or_404(session, bounty_id)
    rows = (await session.execute(
        select(Submission, UserProfile)
        .outerjoin(UserProfile, UserProfile.user_id == Submission.user_id)
        .where(Submission.bounty_id == bounty_id)
        .order_by(Submission.created_at.desc())
    )).all()
    return [
        SubmissionWithSubmitter(
            **SubmissionPublic.model_validate(s).model_dump(),
            submitter=SubmitterPublic.model_validate(u) if u else None,
        )
        for s, u in rows
    ]
