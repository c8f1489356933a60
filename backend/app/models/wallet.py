from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Uuid, func
from app.db import Base, Money, JSONType

class Transaction(Base):
    """
    Money movements against a profile (USD, always positive amounts).
      - deposit        => Stripe top-up, credits wallet_balance when completed
      - bounty_charge  => debits wallet_balance when a bounty is posted
      - bounty_refund  => credits back the unspent part of a deleted bounty
      - payout         => creator cash-out, mirrors a Payout row
    Idempotency: stripe_payment_intent_id is unique (pi_...).
    """
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("user_profiles.user_id", ondelete="CASCADE"), index=True, nullable=False)

    type: Mapped[str] = mapped_column(String(16), nullable=False)    # deposit | payout | bounty_charge | bounty_refund
    amount: Mapped[float] = mapped_column(Money(), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending | completed | failed | refunded

    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    stripe_transfer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    meta_json: Mapped[dict] = mapped_column("metadata", JSONType, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("stripe_payment_intent_id", name="uq_transactions_payment_intent"),
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )


class Payout(Base):
    __tablename__ = "payouts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("user_profiles.user_id", ondelete="CASCADE"), index=True, nullable=False)
    amount: Mapped[float] = mapped_column(Money(), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending | processing | completed | failed
    payout_method: Mapped[str | None] = mapped_column(String(16), nullable=True)     # stripe | bank
    stripe_transfer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
