from __future__ import annotations
from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Literal
from datetime import datetime

Role = Literal["creator", "business"]

class UserProfilePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: EmailStr | None = None
    username: str | None = None
    role: Role | None = None
    total_earnings: float
    wallet_balance: float
    created_at: datetime
    updated_at: datetime

class SubmitterPublic(BaseModel):
    """What other users may see about a submitter."""
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    username: str | None = None
    email: EmailStr | None = None

class SetRoleRequest(BaseModel):
    role: str

class LeaderboardRow(BaseModel):
    user_id: str
    username: str | None = None
    total_earnings: float

class UserStats(BaseModel):
    total_earnings: float
    total_submissions: int
    pending_submissions: int
    approved_submissions: int
    rejected_submissions: int
