from __future__ import annotations
from dataclasses import dataclass, field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.services.content_validation import ContentValidator
from app.services.progress import APPROVED, submission_earnings
from app.services.view_counts import ViewCounter
from app.services.wallet import adjust_earnings

log = structlog.get_logger()


@dataclass
class RefreshReport:
    updated: int = 0
    failed: int = 0
    results: list[dict] = field(default_factory=list)


def bounty_requirements(bounty: Bounty) -> str:
    return (bounty.instructions or "").strip() or bounty.description


async def lock_submission(session: AsyncSession, sub: Submission) -> Submission:
    """Row-lock `sub` and reload it, so earned_amount is read fresh before it is moved (no-op lock on sqlite)."""
    return await session.scalar(
        select(Submission)
        .where(Submission.id == sub.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def _sync_earnings(session: AsyncSession, sub: Submission, rate: float) -> None:
    """earned_amount follows status and views; the submitter's total_earnings moves by the difference."""
    new = submission_earnings(sub.view_count, rate) if sub.status == APPROVED else 0.0
    old = float(sub.earned_amount or 0)
    sub.earned_amount = new
    await adjust_earnings(session, user_id=sub.user_id, delta=new - old)


async def set_status(
    session: AsyncSession, sub: Submission, bounty: Bounty, status: str, explanation: str | None = None
) -> Submission:
    """Approve/reject (or reopen) a submission. Caller commits."""
    sub = await lock_submission(session, sub)
    sub.status = status
    if explanation is not None:
        sub.validation_explanation = explanation
    await _sync_earnings(session, sub, bounty.rate_per_1k_views)
    log.info("submission_status_set", submission_id=str(sub.id), status=status, earned=sub.earned_amount)
    return sub


async def validate_submission(
    session: AsyncSession, validator: ContentValidator, sub: Submission, bounty: Bounty
) -> Submission:
    verdict = await validator.validate(sub.video_url, bounty_requirements(bounty))
    return await set_status(session, sub, bounty, APPROVED if verdict.valid else "rejected", verdict.explanation)


async def validate_pending(
    session: AsyncSession, validator: ContentValidator, bounty: Bounty, pending: list[Submission]
) -> list[dict]:
    """Judge all pending submissions concurrently, then apply verdicts one by one."""
    requirements = bounty_requirements(bounty)
    verdicts = await validator.validate_many([(s.video_url, requirements) for s in pending])
    out = []
    for sub, verdict in zip(pending, verdicts):
        await set_status(session, sub, bounty, APPROVED if verdict.valid else "rejected", verdict.explanation)
        out.append({
            "submission_id": sub.id,
            "valid": verdict.valid,
            "status": sub.status,
            "explanation": verdict.explanation,
            "earned_amount": sub.earned_amount,
        })
    return out


async def refresh_views(
    session: AsyncSession, counter: ViewCounter, subs: list[Submission], rates: dict
) -> RefreshReport:
    """
    Re-fetch view counts for `subs`. `rates` maps bounty_id -> rate_per_1k_views.
    Failures are reported per submission and leave the row untouched. Caller commits.
    """
    report = RefreshReport()
    stats = await counter.fetch_many([s.video_url for s in subs])
    for sub, st in zip(subs, stats):
        if st.success and st.view_count is not None:
            sub = await lock_submission(session, sub)
            sub.view_count = max(0, int(st.view_count))
            if st.title and not sub.title:
                sub.title = st.title
            if st.author and not sub.author:
                sub.author = st.author
            if st.thumbnail and not sub.cover_image_url:
                sub.cover_image_url = st.thumbnail
            await _sync_earnings(session, sub, rates.get(sub.bounty_id, 0))
            report.updated += 1
        else:
            report.failed += 1
        report.results.append({
            "submission_id": sub.id,
            "url": sub.video_url,
            "platform": st.platform,
            "success": bool(st.success and st.view_count is not None),
            "view_count": st.view_count,
            "error": st.error,
        })
    log.info("views_refreshed", updated=report.updated, failed=report.failed)
    return report
