from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.models.user import UserProfile
from app.models.wallet import Transaction, Payout
import structlog

log = structlog.get_logger()


class InsufficientFunds(Exception):
    pass


async def _lock_profile(session: AsyncSession, user_id: str) -> UserProfile:
    """Row-lock the profile so concurrent balance updates serialize (no-op on sqlite)."""
    profile = await session.scalar(
        select(UserProfile).where(UserProfile.user_id == user_id).with_for_update()
    )
    if profile is None:
        raise LookupError(f"user profile {user_id} not found")
    return profile


async def wallet_balance(session: AsyncSession, user_id: str) -> float:
    profile = await session.get(UserProfile, user_id)
    return float(profile.wallet_balance or 0) if profile else 0.0


async def charge_wallet(
    session: AsyncSession,
    *,
    user_id: str,
    amount: float,
    tx_type: str = "bounty_charge",
    metadata: dict | None = None,
) -> Transaction:
    """
    Debit a business wallet and record a completed transaction.
    Raises InsufficientFunds if balance is too low. Caller commits.
    """
    if amount <= 0:
        raise ValueError("amount must be > 0")
    profile = await _lock_profile(session, user_id)
    balance = float(profile.wallet_balance or 0)
    if balance < amount:
        raise InsufficientFunds(f"need {amount:.2f}, have {balance:.2f}")
    profile.wallet_balance = balance - amount
    tx = Transaction(user_id=user_id, type=tx_type, amount=amount, status="completed", meta_json=metadata or {})
    session.add(tx)
    return tx


async def credit_wallet(
    session: AsyncSession,
    *,
    user_id: str,
    amount: float,
    tx_type: str,
    metadata: dict | None = None,
) -> Transaction | None:
    """Credit a wallet (refunds). Zero or negative amounts are ignored."""
    if amount <= 0:
        return None
    profile = await _lock_profile(session, user_id)
    profile.wallet_balance = float(profile.wallet_balance or 0) + amount
    tx = Transaction(user_id=user_id, type=tx_type, amount=amount, status="completed", meta_json=metadata or {})
    session.add(tx)
    return tx


async def record_pending_deposit(
    session: AsyncSession, *, user_id: str, amount: float, payment_intent_id: str, currency: str
) -> Transaction:
    tx = Transaction(
        user_id=user_id,
        type="deposit",
        amount=amount,
        status="pending",
        stripe_payment_intent_id=payment_intent_id,
        meta_json={"currency": currency, "stripe_payment_intent_id": payment_intent_id},
    )
    session.add(tx)
    await session.flush()
    return tx


async def complete_deposit_idempotent(session: AsyncSession, *, payment_intent_id: str, user_id: str) -> bool:
    """
    Mark the pending deposit for this PaymentIntent completed and credit the wallet.
    Idempotent by payment_intent_id: returns True only the first time.
    """
    tx = await session.scalar(
        select(Transaction).where(Transaction.stripe_payment_intent_id == payment_intent_id).with_for_update()
    )
    if tx is None:
        log.warning("deposit_transaction_missing", payment_intent_id=payment_intent_id)
        return False
    if tx.status == "completed":
        return False
    if tx.user_id != user_id:
        log.warning("deposit_user_mismatch", payment_intent_id=payment_intent_id, user_id=user_id)
        return False

    profile = await _lock_profile(session, tx.user_id)
    profile.wallet_balance = float(profile.wallet_balance or 0) + float(tx.amount)
    tx.status = "completed"
    log.info("deposit_completed", payment_intent_id=payment_intent_id, user_id=tx.user_id, amount=float(tx.amount))
    return True


async def fail_deposit(session: AsyncSession, *, payment_intent_id: str) -> bool:
    tx = await session.scalar(select(Transaction).where(Transaction.stripe_payment_intent_id == payment_intent_id))
    if tx is None or tx.status == "completed":
        return False
    tx.status = "failed"
    return True


async def adjust_earnings(session: AsyncSession, *, user_id: str, delta: float) -> None:
    """Move a creator's total_earnings by delta (positive on approval, negative on reversal)."""
    if not delta:
        return
    profile = await _lock_profile(session, user_id)
    profile.total_earnings = float(profile.total_earnings or 0) + delta


async def request_payout(session: AsyncSession, *, user_id: str, amount: float, payout_method: str) -> Payout:
    """
    Reserve creator earnings for a payout: debit total_earnings, create a pending
    payout and its pending transaction. Raises InsufficientFunds. Caller commits.
    """
    if amount <= 0:
        raise ValueError("amount must be > 0")
    profile = await _lock_profile(session, user_id)
    available = float(profile.total_earnings or 0)
    if available < amount:
        raise InsufficientFunds(f"Available: ${available:.2f}, Requested: ${amount:.2f}")

    profile.total_earnings = available - amount
    payout = Payout(user_id=user_id, amount=amount, status="pending", payout_method=payout_method)
    session.add(payout)
    await session.flush()  # get payout.id
    session.add(Transaction(
        user_id=user_id,
        type="payout",
        amount=amount,
        status="pending",
        meta_json={"payout_id": str(payout.id), "payout_method": payout_method},
    ))
    return payout


async def list_transactions(session: AsyncSession, user_id: str, *, limit: int, offset: int) -> list[Transaction]:
    return (await session.execute(
        select(Transaction).where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc()).limit(limit).offset(offset)
    )).scalars().all()


async def list_payouts(session: AsyncSession, user_id: str, *, limit: int, offset: int) -> list[Payout]:
    return (await session.execute(
        select(Payout).where(Payout.user_id == user_id)
        .order_by(Payout.created_at.desc()).limit(limit).offset(offset)
    )).scalars().all()
