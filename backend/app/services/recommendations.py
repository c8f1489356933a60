from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.config import settings
from app.models.bounty import Bounty
from app.models.recommendation import BountyRecommendation
from app.models.submission import Submission
from app.services.matching import CreatorMatcher, analyze_creator_profile
from app.services.progress import BountyProgress, compute_bounty_progress

log = structlog.get_logger()

NEW_CREATOR_SCORE = 50.0
NEW_CREATOR_REASON = "New creator - explore this opportunity"


@dataclass
class Recommendation:
    bounty: Bounty
    progress: BountyProgress
    match_score: float
    reasons: list[str] = field(default_factory=list)
    platform_match: bool = False
    content_style_match: bool = False
    last_calculated_at: datetime | None = None


@dataclass
class RecommendationSet:
    recommendations: list[Recommendation]
    cached: bool
    calculated_at: datetime


def _aware(ts: datetime) -> datetime:
    # sqlite hands back naive timestamps
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


async def active_bounties(session: AsyncSession) -> list[tuple[Bounty, BountyProgress]]:
    """Bounties still accepting views, newest first."""
    rows = (await session.execute(select(Bounty).order_by(Bounty.created_at.desc()))).scalars().all()
    out = []
    for b in rows:
        progress = compute_bounty_progress(b, b.submissions)
        if not progress.is_completed:
            out.append((b, progress))
    return out


async def cached_recommendations(
    session: AsyncSession, user_id: str, *, max_age_hours: int, limit: int
) -> list[Recommendation]:
    cutoff = datetime.now(timezone.utc) - timedelta(hours=max_age_hours)
    rows = (await session.execute(
        select(BountyRecommendation, Bounty)
        .join(Bounty, Bounty.id == BountyRecommendation.bounty_id)
        .where(BountyRecommendation.user_id == user_id, BountyRecommendation.last_calculated_at >= cutoff)
        .order_by(BountyRecommendation.match_score.desc())
        .limit(limit)
    )).all()
    return [
        Recommendation(
            bounty=bounty,
            progress=compute_bounty_progress(bounty, bounty.submissions),
            match_score=float(rec.match_score),
            reasons=list(rec.match_reasons or []),
            platform_match=bool(rec.platform_match),
            content_style_match=bool(rec.content_style_match),
            last_calculated_at=rec.last_calculated_at,
        )
        for rec, bounty in rows
    ]


async def cache_recommendations(session: AsyncSession, user_id: str, recs: list[Recommendation]) -> None:
    """Replace the user's cached rows. Caller commits."""
    now = datetime.now(timezone.utc)
    await session.execute(delete(BountyRecommendation).where(BountyRecommendation.user_id == user_id))
    for r in recs:
        session.add(BountyRecommendation(
            user_id=user_id,
            bounty_id=r.bounty.id,
            match_score=r.match_score,
            match_reasons=r.reasons,
            platform_match=r.platform_match,
            content_style_match=r.content_style_match,
            last_calculated_at=now,
        ))
        r.last_calculated_at = now


async def generate_recommendations(
    session: AsyncSession, user_id: str, matcher: CreatorMatcher, *, limit: int
) -> list[Recommendation]:
    bounties = await active_bounties(session)
    if not bounties:
        return []

    history = (await session.execute(
        select(Submission).where(Submission.user_id == user_id).order_by(Submission.created_at.desc())
    )).scalars().all()
    profile = analyze_creator_profile(user_id, list(history))

    if profile.total_submissions == 0:
        recs = [
            Recommendation(bounty=b, progress=p, match_score=NEW_CREATOR_SCORE, reasons=[NEW_CREATOR_REASON])
            for b, p in bounties[:limit]
        ]
    else:
        matches = await matcher.match_many(profile, bounties)
        recs = [
            Recommendation(
                bounty=b,
                progress=p,
                match_score=m.match_score,
                reasons=m.reasons,
                platform_match=m.platform_compatibility,
                content_style_match=m.content_style_alignment,
            )
            for b, p, m in matches
        ]
        recs.sort(key=lambda r: r.match_score, reverse=True)
        recs = recs[:limit]

    await cache_recommendations(session, user_id, recs)
    log.info("recommendations_generated", user_id=user_id, count=len(recs), submissions=profile.total_submissions)
    return recs


async def get_recommendations(
    session: AsyncSession,
    user_id: str,
    matcher: CreatorMatcher,
    *,
    ttl_hours: int | None = None,
    limit: int | None = None,
) -> RecommendationSet:
    """Cached rows younger than the TTL win; otherwise recompute and cache the top matches."""
    ttl_hours = settings.recommendation_ttl_hours if ttl_hours is None else ttl_hours
    limit = settings.max_recommendations if limit is None else limit

    cached = await cached_recommendations(session, user_id, max_age_hours=ttl_hours, limit=limit)
    if cached:
        calculated_at = max(_aware(r.last_calculated_at) for r in cached)
        return RecommendationSet(recommendations=cached, cached=True, calculated_at=calculated_at)

    recs = await generate_recommendations(session, user_id, matcher, limit=limit)
    calculated_at = recs[0].last_calculated_at if recs else datetime.now(timezone.utc)
    return RecommendationSet(recommendations=recs, cached=False, calculated_at=calculated_at)
