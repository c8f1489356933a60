from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Literal
from uuid import UUID
from datetime import datetime

class WalletBalance(BaseModel):
    balance: float
    currency: str = "USD"
    formatted_balance: str

class CreateIntentRequest(BaseModel):
    amount: float = Field(description="USD amount to deposit")
    currency: str = "usd"

class CreateIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str
    transaction_id: UUID

class TransactionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    amount: float
    status: str
    stripe_payment_intent_id: str | None = None
    stripe_transfer_id: str | None = None
    metadata: dict = Field(default_factory=dict, validation_alias="meta_json")
    created_at: datetime
    updated_at: datetime

class PayoutPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: float
    status: str
    payout_method: str | None = None
    stripe_transfer_id: str | None = None
    created_at: datetime
    updated_at: datetime

class PayoutRequest(BaseModel):
    amount: float
    payout_method: Literal["stripe", "bank"] = "stripe"

class TransactionPage(BaseModel):
    items: list[TransactionPublic]
    total: int
    page: int
    limit: int

class PayoutPage(BaseModel):
    items: list[PayoutPublic]
    total: int
    page: int
    limit: int
