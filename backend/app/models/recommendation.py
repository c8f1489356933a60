from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, Float, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from app.db import Base, JSONType

class BountyRecommendation(Base):
    """Cached creator->bounty match, replaced wholesale per user on recompute."""
    __tablename__ = "bounty_recommendations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("user_profiles.user_id", ondelete="CASCADE"), index=True, nullable=False)
    bounty_id: Mapped[uuid.UUID] = mapped_column(Uuid(), ForeignKey("bounties.id", ondelete="CASCADE"), index=True, nullable=False)
    match_score: Mapped[float] = mapped_column(Float, nullable=False)
    match_reasons: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    platform_match: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    content_style_match: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "bounty_id", name="uq_recommendation_user_bounty"),
    )
