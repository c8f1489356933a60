from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal
from uuid import UUID
from datetime import datetime
from app.schemas.user import SubmitterPublic

SubmissionStatus = Literal["pending", "approved", "rejected"]
Platform = Literal["youtube", "tiktok", "instagram", "other"]

class SubmissionCreate(BaseModel):
    url: str = Field(min_length=1)
    bounty_id: UUID

class SubmissionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bounty_id: UUID
    user_id: str
    video_url: str
    view_count: int
    status: SubmissionStatus
    validation_explanation: str | None = None
    title: str | None = None
    description: str | None = None
    cover_image_url: str | None = None
    author: str | None = None
    platform: Platform | None = None
    earned_amount: float
    created_at: datetime
    updated_at: datetime

class SubmissionWithSubmitter(SubmissionPublic):
    submitter: SubmitterPublic | None = None

class ReviewRequest(BaseModel):
    status: Literal["approved", "rejected"]
    explanation: str | None = None

class ValidationOutcome(BaseModel):
    submission_id: UUID
    valid: bool
    status: SubmissionStatus
    explanation: str
    earned_amount: float

class BulkValidationResponse(BaseModel):
    bounty_id: UUID
    validated: int
    approved: int
    rejected: int
    results: list[ValidationOutcome]

class RefreshViewsRequest(BaseModel):
    submission_ids: list[UUID] | None = None
    bounty_id: UUID | None = None
    background: bool = False

class RefreshResult(BaseModel):
    submission_id: UUID
    url: str
    platform: str
    success: bool
    view_count: int | None = None
    error: str | None = None

class RefreshViewsResponse(BaseModel):
    success: bool
    updated: int = 0
    failed: int = 0
    results: list[RefreshResult] = Field(default_factory=list)
    job_id: str | None = None
