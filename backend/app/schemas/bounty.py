from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from uuid import UUID
from datetime import datetime
from app.services.progress import BountyProgress

class BountyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    description: str = Field(min_length=1)
    instructions: str | None = None
    total_bounty: float = Field(gt=0)
    rate_per_1k_views: float = Field(gt=0)
    logo_url: str | None = None
    company_name: str | None = Field(default=None, max_length=160)

    @field_validator("name", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

class BountyUpdate(BaseModel):
    """Money fields are fixed once the wallet has been charged."""
    name: str | None = Field(default=None, min_length=1, max_length=160)
    description: str | None = Field(default=None, min_length=1)
    instructions: str | None = None
    logo_url: str | None = None
    company_name: str | None = Field(default=None, max_length=160)

class BountyPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: str
    name: str
    description: str
    instructions: str | None = None
    total_bounty: float
    rate_per_1k_views: float
    logo_url: str | None = None
    company_name: str | None = None
    created_at: datetime
    updated_at: datetime

class BountyWithProgress(BountyPublic):
    calculated_claimed_bounty: float
    progress_percentage: float
    total_submission_views: int
    is_completed: bool

    @classmethod
    def build(cls, bounty, progress: BountyProgress) -> "BountyWithProgress":
        return cls(
            **BountyPublic.model_validate(bounty).model_dump(),
            calculated_claimed_bounty=progress.capped_used_budget,
            progress_percentage=progress.percentage,
            total_submission_views=progress.total_views,
            is_completed=progress.is_completed,
        )

class BountyDeleted(BaseModel):
    id: UUID
    refunded: float
