from __future__ import annotations
from pydantic import BaseModel

class ValidateRequest(BaseModel):
    url: str | None = None
    requirements: str | None = None

class ValidateResponse(BaseModel):
    valid: bool
    explanation: str
