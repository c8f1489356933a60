from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from rq import Queue
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.db import get_session
from app.auth_deps import get_current_user
from app.deps import get_view_counter, get_validator, get_queue
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.models.user import UserProfile
from app.routes.bounties import get_bounty_or_404
from app.schemas.submission import (
    SubmissionCreate, SubmissionPublic, ReviewRequest, ValidationOutcome, BulkValidationResponse,
    RefreshViewsRequest, RefreshViewsResponse, RefreshResult, SubmissionStatus,
)
from app.services.content_validation import ContentValidator, ValidationConfigError
from app.services.platforms import detect_platform, is_http_url
from app.services.progress import compute_bounty_progress
from app.services.submissions import set_status, validate_submission, validate_pending, refresh_views
from app.services.view_counts import ViewCounter

router = APIRouter(tags=["submissions"])
log = structlog.get_logger()


async def _get_submission_or_404(session: AsyncSession, submission_id: UUID) -> Submission:
    s = await session.get(Submission, submission_id)
    if not s:
        raise HTTPException(status_code=404, detail="Submission not found")
    return s


@router.post("/submit-bounty-item", response_model=SubmissionPublic, status_code=201)
async def submit_bounty_item(
    payload: SubmissionCreate,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
    counter: ViewCounter = Depends(get_view_counter),
):
    url = payload.url.strip()
    if not is_http_url(url):
        raise HTTPException(status_code=400, detail="Invalid URL format")

    bounty = await get_bounty_or_404(session, payload.bounty_id)
    if compute_bounty_progress(bounty, bounty.submissions).is_completed:
        raise HTTPException(status_code=409, detail="This bounty has been completed and is no longer accepting submissions")

    dup = await session.scalar(
        select(Submission.id).where(Submission.bounty_id == bounty.id, Submission.video_url == url)
    )
    if dup:
        raise HTTPException(status_code=409, detail="This URL has already been submitted to this bounty")

    # metadata is best effort; a failed lookup still records the submission
    preview = await counter.link_preview(url)
    stats = await counter.fetch(url)

    s = Submission(
        bounty_id=bounty.id,
        user_id=user.user_id,
        video_url=url,
        platform=detect_platform(url),
        status="pending",
        view_count=int(stats.view_count or 0) if stats.success else 0,
        earned_amount=0,
        title=stats.title or preview.title,
        description=stats.description or preview.description,
        cover_image_url=stats.thumbnail or preview.image,
        author=stats.author,
    )
    session.add(s)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="This URL has already been submitted to this bounty")
    await session.refresh(s)
    log.info("submission_created", submission_id=str(s.id), bounty_id=str(bounty.id), platform=s.platform, views=s.view_count)
    return SubmissionPublic.model_validate(s)


@router.get("/submissions", response_model=list[SubmissionPublic])
async def list_submissions(
    bounty_id: UUID | None = Query(None),
    user_id: str | None = Query(None),
    status: SubmissionStatus | None = Query(None),
    session: AsyncSession = Depends(get_session),
):
    q = select(Submission).order_by(Submission.created_at.desc())
    if bounty_id:
        q = q.where(Submission.bounty_id == bounty_id)
    if user_id:
        q = q.where(Submission.user_id == user_id)
    if status:
        q = q.where(Submission.status == status)
    rows = (await session.execute(q)).scalars().all()
    return [SubmissionPublic.model_validate(s) for s in rows]


@router.get("/submissions/{submission_id}", response_model=SubmissionPublic)
async def get_submission(submission_id: UUID, session: AsyncSession = Depends(get_session)):
    return SubmissionPublic.model_validate(await _get_submission_or_404(session, submission_id))


@router.post("/submissions/{submission_id}/validate", response_model=SubmissionPublic)
async def validate_one(
    submission_id: UUID,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
    validator: ContentValidator = Depends(get_validator),
):
    s = await _get_submission_or_404(session, submission_id)
    bounty = await get_bounty_or_404(session, s.bounty_id)
    if user.user_id not in (bounty.creator_id, s.user_id):
        raise HTTPException(status_code=403, detail="Only the bounty owner or the submitter can validate this submission")

    try:
        await validate_submission(session, validator, s, bounty)
    except ValidationConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    await session.commit()
    await session.refresh(s)
    return SubmissionPublic.model_validate(s)


@router.patch("/submissions/{submission_id}/review", response_model=SubmissionPublic)
async def review_submission(
    submission_id: UUID,
    payload: ReviewRequest,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
):
    s = await _get_submission_or_404(session, submission_id)
    bounty = await get_bounty_or_404(session, s.bounty_id)
    if bounty.creator_id != user.user_id:
        raise HTTPException(status_code=403, detail="Only the bounty owner can review submissions")

    await set_status(session, s, bounty, payload.status, payload.explanation)
    await session.commit()
    await session.refresh(s)
    return SubmissionPublic.model_validate(s)


@router.post("/bounties/{bounty_id}/validate-pending", response_model=BulkValidationResponse)
async def validate_pending_submissions(
    bounty_id: UUID,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
    validator: ContentValidator = Depends(get_validator),
):
    bounty = await get_bounty_or_404(session, bounty_id)
    if bounty.creator_id != user.user_id:
        raise HTTPException(status_code=403, detail="Only the bounty owner can validate submissions")

    pending = [s for s in bounty.submissions if s.status == "pending"]
    try:
        results = await validate_pending(session, validator, bounty, pending)
    except ValidationConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    await session.commit()

    approved = sum(1 for r in results if r["valid"])
    return BulkValidationResponse(
        bounty_id=bounty_id,
        validated=len(results),
        approved=approved,
        rejected=len(results) - approved,
        results=[ValidationOutcome(**r) for r in results],
    )


@router.post("/submissions/refresh-views", response_model=RefreshViewsResponse)
async def refresh_submission_views(
    payload: RefreshViewsRequest,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
    counter: ViewCounter = Depends(get_view_counter),
    queue: Queue = Depends(get_queue),
):
    if payload.background:
        job = queue.enqueue(
            "app.jobs.refresh_views.run",
            str(payload.bounty_id) if payload.bounty_id else None,
            [str(i) for i in payload.submission_ids] if payload.submission_ids else None,
        )
        log.info("refresh_views_enqueued", job_id=job.id, bounty_id=str(payload.bounty_id) if payload.bounty_id else None)
        return RefreshViewsResponse(success=True, job_id=job.id)

    if not payload.submission_ids and not payload.bounty_id:
        raise HTTPException(status_code=400, detail="Either submission_ids or bounty_id is required")

    q = select(Submission)
    if payload.submission_ids:
        q = q.where(Submission.id.in_(payload.submission_ids))
    if payload.bounty_id:
        q = q.where(Submission.bounty_id == payload.bounty_id)
    subs = list((await session.execute(q)).scalars().all())
    if not subs:
        return RefreshViewsResponse(success=True)

    rates = dict((await session.execute(
        select(Bounty.id, Bounty.rate_per_1k_views).where(Bounty.id.in_({s.bounty_id for s in subs}))
    )).all())
    report = await refresh_views(session, counter, subs, rates)
    await session.commit()
    return RefreshViewsResponse(
        success=True,
        updated=report.updated,
        failed=report.failed,
        results=[RefreshResult(**r) for r in report.results],
    )
