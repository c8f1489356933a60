from __future__ import annotations
from pydantic import BaseModel, Field
from datetime import datetime
from app.schemas.bounty import BountyWithProgress

class MatchReasons(BaseModel):
    platform_match: str | None = None
    content_style_match: str | None = None
    specific_reasons: list[str] = Field(default_factory=list)

class RecommendationPublic(BaseModel):
    bounty: BountyWithProgress
    match_score: float
    match_reasons: MatchReasons
    platform_match: bool
    content_style_match: bool
    last_calculated_at: datetime | None = None

class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationPublic]
    cached: bool
    calculated_at: datetime
