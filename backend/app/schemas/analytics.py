from __future__ import annotations
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime

class PlatformBreakdown(BaseModel):
    platform: str
    count: int
    earnings: float
    views: int
    percentage: float

class StatusBreakdown(BaseModel):
    status: str
    count: int
    percentage: float

class TopBounty(BaseModel):
    id: UUID
    name: str
    earnings: float
    views: int
    submissions: int

class CreatorAnalytics(BaseModel):
    total_earnings: float
    total_views: int
    total_submissions: int
    approved_submissions: int
    average_earnings_per_submission: float
    approval_rate: float
    platform_breakdown: list[PlatformBreakdown]
    status_breakdown: list[StatusBreakdown]
    top_bounties: list[TopBounty]

class CampaignPerformance(BaseModel):
    id: UUID
    name: str
    total_spend: float
    total_views: int
    submissions: int
    views_per_dollar: float
    budget_utilization: float
    approval_rate: float
    is_completed: bool

class BusinessAnalytics(BaseModel):
    campaign_performance: list[CampaignPerformance]
    total_spend: float
    total_views: int
    total_submissions: int
    average_views_per_submission: float
    average_views_per_dollar: float
    active_campaigns: int
    completed_campaigns: int
    completion_rate: float

class CreatorAnalyticsResponse(BaseModel):
    data: CreatorAnalytics
    date_range: str
    period_start: datetime | None = None
    period_end: datetime

class BusinessAnalyticsResponse(BaseModel):
    data: BusinessAnalytics
    date_range: str
    period_start: datetime | None = None
    period_end: datetime
