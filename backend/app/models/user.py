from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, CheckConstraint, func
from app.db import Base, Money

class UserProfile(Base):
    """
    Local mirror of an auth-provider user.
      - total_earnings => creator side, credited by approved submissions, debited by payouts
      - wallet_balance => business side, credited by Stripe deposits, debited by bounty charges
    """
    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)  # Clerk subject, e.g. user_2ab...
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    username: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    role: Mapped[str | None] = mapped_column(String(16), nullable=True)  # creator|business
    total_earnings: Mapped[float] = mapped_column(Money(), nullable=False, default=0)
    wallet_balance: Mapped[float] = mapped_column(Money(), nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('creator', 'business')", name="ck_user_profiles_role"),
        CheckConstraint("wallet_balance >= 0", name="ck_user_profiles_wallet_nonneg"),
    )
