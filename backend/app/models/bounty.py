from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, DateTime, ForeignKey, CheckConstraint, Uuid, func
from app.db import Base, Money

class Bounty(Base):
    __tablename__ = "bounties"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    creator_id: Mapped[str] = mapped_column(String(64), ForeignKey("user_profiles.user_id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str] = mapped_column(Text(), nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text(), nullable=True)
    total_bounty: Mapped[float] = mapped_column(Money(), nullable=False)
    rate_per_1k_views: Mapped[float] = mapped_column(Money(), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text(), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(160), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # progress is always derived from these, see services.progress
    submissions: Mapped[list["Submission"]] = relationship(
        back_populates="bounty", cascade="all, delete-orphan", passive_deletes=True, lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint("total_bounty > 0", name="ck_bounties_total_positive"),
        CheckConstraint("rate_per_1k_views > 0", name="ck_bounties_rate_positive"),
    )

from app.models.submission import Submission  # noqa: E402
