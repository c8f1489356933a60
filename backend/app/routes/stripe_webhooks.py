from __future__ import annotations
import stripe
import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.db import get_session
from app.services.wallet import complete_deposit_idempotent, fail_deposit

router = APIRouter(tags=["stripe"])
log = structlog.get_logger()

@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_session),
):
    if not settings.stripe_webhook_secret or not settings.stripe_secret_key:
        raise HTTPException(status_code=500, detail="Stripe not configured")

    payload = await request.body()
    try:
        event = stripe.Webhook.construct_event(
            payload=payload.decode("utf-8"),
            sig_header=stripe_signature or "",
            secret=settings.stripe_webhook_secret,
        )
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid webhook: {e}")

    # payment_intent id is the idempotency key for deposits
    if event["type"] == "payment_intent.succeeded":
        pi = event["data"]["object"]
        meta = pi.get("metadata") or {}
        if meta.get("type") == "wallet_deposit" and meta.get("user_id"):
            credited = await complete_deposit_idempotent(db, payment_intent_id=pi["id"], user_id=meta["user_id"])
            if credited:
                await db.commit()
        return {"received": True}

    if event["type"] == "payment_intent.payment_failed":
        pi = event["data"]["object"]
        if await fail_deposit(db, payment_intent_id=pi["id"]):
            await db.commit()
            log.info("deposit_failed", payment_intent_id=pi["id"])
        return {"received": True}

    return {"received": True, "ignored": event["type"]}
