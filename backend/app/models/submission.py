from __future__ import annotations
import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Uuid, func
from app.db import Base, Money

if TYPE_CHECKING:
    from app.models.bounty import Bounty


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)

    bounty_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("bounties.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("user_profiles.user_id", ondelete="CASCADE"), index=True, nullable=False
    )

    video_url: Mapped[str] = mapped_column(Text(), nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # 'pending'|'approved'|'rejected'
    validation_explanation: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # link preview / platform metadata
    title: Mapped[str | None] = mapped_column(Text(), nullable=True)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(Text(), nullable=True)
    author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    platform: Mapped[str | None] = mapped_column(String(16), nullable=True)  # 'youtube'|'tiktok'|'instagram'|'other'

    # only non-zero while status == 'approved'
    earned_amount: Mapped[float] = mapped_column(Money(), nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    bounty: Mapped["Bounty"] = relationship(back_populates="submissions")

    __table_args__ = (
        UniqueConstraint("bounty_id", "video_url", name="uq_submission_url_per_bounty"),
        CheckConstraint("view_count >= 0", name="ck_submissions_views_nonneg"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_submissions_status"),
    )
