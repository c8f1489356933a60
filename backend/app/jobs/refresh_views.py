from __future__ import annotations
import asyncio
from uuid import UUID
import httpx
import structlog
from sqlalchemy import select
from app.config import settings
from app.db import SessionLocal, engine
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.services.submissions import refresh_views
from app.services.view_counts import ViewCounter

log = structlog.get_logger()


async def _refresh(bounty_id: str | None, submission_ids: list[str] | None) -> dict:
    async with SessionLocal() as session, httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
        q = select(Submission)
        if submission_ids:
            q = q.where(Submission.id.in_([UUID(i) for i in submission_ids]))
        if bounty_id:
            q = q.where(Submission.bounty_id == UUID(bounty_id))
        subs = list((await session.execute(q)).scalars().all())
        if not subs:
            return {"updated": 0, "failed": 0}

        rates = dict((await session.execute(
            select(Bounty.id, Bounty.rate_per_1k_views).where(Bounty.id.in_({s.bounty_id for s in subs}))
        )).all())
        report = await refresh_views(session, ViewCounter(http, settings), subs, rates)
        await session.commit()
        return {"updated": report.updated, "failed": report.failed}


async def _run(bounty_id: str | None, submission_ids: list[str] | None) -> dict:
    try:
        return await _refresh(bounty_id, submission_ids)
    finally:
        # each job runs on a fresh event loop; pooled connections must not outlive it
        await engine.dispose()


def run(bounty_id: str | None = None, submission_ids: list[str] | None = None) -> dict:
    # RQ entry point (sync); with no filters every submission is refreshed
    log.info("refresh_views_job_started", bounty_id=bounty_id, submissions=len(submission_ids or []))
    return asyncio.run(_run(bounty_id, submission_ids))
