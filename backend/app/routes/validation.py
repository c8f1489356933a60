from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from app.auth_deps import get_current_user
from app.deps import get_validator
from app.models.user import UserProfile
from app.schemas.validation import ValidateRequest, ValidateResponse
from app.services.content_validation import ContentValidator, ValidationConfigError

router = APIRouter(tags=["validation"])


@router.post("/validate-bounty", response_model=ValidateResponse)
async def validate_bounty(
    payload: ValidateRequest,
    user: UserProfile = Depends(get_current_user),
    validator: ContentValidator = Depends(get_validator),
):
    """Judge a YouTube video against free-form requirements without touching any submission."""
    if not payload.url or not payload.requirements:
        raise HTTPException(status_code=400, detail="URL and requirements are required")
    try:
        verdict = await validator.validate(payload.url, payload.requirements)
    except ValidationConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return ValidateResponse(valid=verdict.valid, explanation=verdict.explanation)
