from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db import get_session
from app.auth_deps import get_current_user
from app.deps import get_matcher
from app.models.user import UserProfile
from app.schemas.bounty import BountyWithProgress
from app.schemas.recommendation import RecommendationsResponse, RecommendationPublic, MatchReasons
from app.services.matching import CreatorMatcher
from app.services.recommendations import get_recommendations

router = APIRouter(prefix="/bounties", tags=["recommendations"])


@router.get("/recommendations", response_model=RecommendationsResponse)
async def recommendations(
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
    matcher: CreatorMatcher = Depends(get_matcher),
):
    result = await get_recommendations(session, user.user_id, matcher)
    if not result.cached:
        await session.commit()
    return RecommendationsResponse(
        recommendations=[
            RecommendationPublic(
                bounty=BountyWithProgress.build(r.bounty, r.progress),
                match_score=r.match_score,
                match_reasons=MatchReasons(
                    platform_match="Platform experience matches" if r.platform_match else None,
                    content_style_match="Content style aligns" if r.content_style_match else None,
                    specific_reasons=r.reasons,
                ),
                platform_match=r.platform_match,
                content_style_match=r.content_style_match,
                last_calculated_at=r.last_calculated_at,
            )
            for r in result.recommendations
        ],
        cached=result.cached,
        calculated_at=result.calculated_at,
    )
