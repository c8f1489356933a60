from __future__ import annotations
import stripe
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.config import settings
from app.db import get_session
from app.auth_deps import get_current_user, require_role
from app.models.user import UserProfile
from app.models.wallet import Transaction
from app.schemas.wallet import (
    WalletBalance, CreateIntentRequest, CreateIntentResponse, TransactionPublic, TransactionPage,
)
from app.services.wallet import wallet_balance, record_pending_deposit, list_transactions

router = APIRouter(tags=["wallet"])
log = structlog.get_logger()

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 100


def page_params(limit: int | None, offset: int | None) -> tuple[int, int, int]:
    """Clamp limit to 1..100 (default 50) and offset to >= 0; returns (limit, offset, page)."""
    limit = DEFAULT_PAGE_LIMIT if limit is None else min(max(limit, 1), MAX_PAGE_LIMIT)
    offset = max(offset or 0, 0)
    page = offset // limit + 1 if offset > 0 else 1
    return limit, offset, page


@router.get("/wallet/balance", response_model=WalletBalance)
async def get_balance(session: AsyncSession = Depends(get_session), user: UserProfile = Depends(get_current_user)):
    bal = await wallet_balance(session, user.user_id)
    return WalletBalance(balance=bal, currency="USD", formatted_balance=f"${bal:,.2f}")


@router.post("/payments/create-intent", response_model=CreateIntentResponse, status_code=201)
async def create_payment_intent(
    payload: CreateIntentRequest,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(require_role("business")),
):
    if not settings.stripe_secret_key:
        raise HTTPException(status_code=500, detail="Stripe not configured")
    if payload.amount < settings.min_deposit_usd:
        raise HTTPException(status_code=400, detail=f"Minimum deposit amount is ${settings.min_deposit_usd:g}")
    if payload.amount > settings.max_deposit_usd:
        raise HTTPException(status_code=400, detail=f"Maximum deposit amount is ${settings.max_deposit_usd:g}")

    stripe.api_key = settings.stripe_secret_key
    currency = payload.currency.lower()
    try:
        intent = stripe.PaymentIntent.create(
            amount=int(round(payload.amount * 100)),
            currency=currency,
            metadata={"user_id": user.user_id, "type": "wallet_deposit"},
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as e:
        log.error("payment_intent_create_failed", user_id=user.user_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to create payment intent")

    if not intent.get("client_secret"):
        stripe.PaymentIntent.cancel(intent["id"])
        raise HTTPException(status_code=500, detail="Payment intent has no client secret")

    tx = await record_pending_deposit(
        session, user_id=user.user_id, amount=payload.amount, payment_intent_id=intent["id"], currency=currency
    )
    await session.commit()
    log.info("deposit_intent_created", user_id=user.user_id, payment_intent_id=intent["id"], amount=payload.amount)
    return CreateIntentResponse(client_secret=intent["client_secret"], payment_intent_id=intent["id"], transaction_id=tx.id)


@router.get("/transactions", response_model=TransactionPage)
async def transactions(
    limit: int | None = None,
    offset: int | None = None,
    session: AsyncSession = Depends(get_session),
    user: UserProfile = Depends(get_current_user),
):
    limit, offset, page = page_params(limit, offset)
    rows = await list_transactions(session, user.user_id, limit=limit, offset=offset)
    total = await session.scalar(select(func.count()).select_from(Transaction).where(Transaction.user_id == user.user_id))
    return TransactionPage(
        items=[TransactionPublic.model_validate(r) for r in rows], total=int(total or 0), page=page, limit=limit
    )
