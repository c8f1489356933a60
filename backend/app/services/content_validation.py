from __future__ import annotations
import asyncio
import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel, Field, ValidationError
from app.config import settings
from app.services.platforms import is_youtube_url

log = structlog.get_logger()

MSG_NOT_YOUTUBE = "URL must be a valid YouTube video URL"
MSG_OVERLOADED = "The AI validation service is currently overloaded. Please try again in a few moments."
MSG_RATE_LIMITED = "Too many validation requests. Please wait a moment and try again."
MSG_CONFIG = "AI validation service configuration error. Please contact support."
MSG_GENERIC = "Unable to validate video at this time. Please try again later or contact support if the issue persists."


class ValidationConfigError(Exception):
    """The AI provider is unconfigured or rejected our credentials."""


class Verdict(BaseModel):
    valid: bool = Field(
        description="True only when the video meets every requirement with every specific detail matching exactly. "
                    "False if any detail is missing, wrong, or replaced with something similar."
    )
    explanation: str = Field(description="Short reason the video does or does not meet the requirements")


def build_prompt(requirements: str) -> str:
    return f"""
You are a strict moderator reviewing a YouTube video submitted to a paid UGC bounty.
Approve it only when EVERY requirement below is met exactly.

BOUNTY REQUIREMENTS: {requirements}

How to judge:
1. List every specific detail the requirements name: products, brands, colors, logos, text, phrases, actions.
2. Watch the video and check each detail. Similar is not enough: a different hat is not "the clerk builder mode hat",
   a red Product X is not "Product X in blue".
3. The required item must be a core, prominent part of the video and actively used or demonstrated,
   not a background prop or a passing mention.
4. The video must have genuine value for viewers and represent the brand positively.

Reject when any detail is missing, incorrect, or only approximated; when the product appears for a small fraction
of the video without context; when the video's main subject is unrelated; or when the content feels forced.

Set valid=true only if all of the above hold. When rejecting, name exactly which detail did not match and what
was shown instead, phrased as actionable feedback to the creator.
"""


def classify_error(err: Exception) -> str:
    """Map a provider failure to the message shown to the creator. Raises for credential problems."""
    code = getattr(err, "code", None)
    text = str(err).lower()
    if code in (401, 403) or "api key" in text or "api_key" in text:
        raise ValidationConfigError(MSG_CONFIG) from err
    if code == 503 or "overloaded" in text or "unavailable" in text:
        return MSG_OVERLOADED
    if code == 429 or "quota" in text or "rate limit" in text:
        return MSG_RATE_LIMITED
    return MSG_GENERIC


class ContentValidator:
    def __init__(self, client: genai.Client | None, model: str | None = None):
        self.client = client
        self.model = model or settings.gemini_model

    async def validate(self, url: str, requirements: str) -> Verdict:
        if not is_youtube_url(url):
            return Verdict(valid=False, explanation=MSG_NOT_YOUTUBE)
        if self.client is None:
            raise ValidationConfigError("Gemini API key not configured")

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part(file_data=types.FileData(file_uri=url, mime_type="video/youtube")),
                    types.Part(text=build_prompt(requirements)),
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=Verdict,
                ),
            )
            verdict = Verdict.model_validate_json(response.text or "")
        except (genai_errors.APIError, httpx.HTTPError, ValidationError, ValueError) as e:
            log.warning("content_validation_failed", url=url, error=str(e))
            return Verdict(valid=False, explanation=classify_error(e))

        log.info("content_validated", url=url, valid=verdict.valid)
        return verdict

    async def validate_many(self, items: list[tuple[str, str]]) -> list[Verdict]:
        """
        Validate (url, requirements) pairs concurrently; one verdict per input, in order.
        A configuration error is not a per-item failure and is re-raised.
        """
        settled = await asyncio.gather(
            *(self.validate(url, req) for url, req in items), return_exceptions=True
        )
        out: list[Verdict] = []
        for res in settled:
            if isinstance(res, BaseException):
                if isinstance(res, ValidationConfigError) or not isinstance(res, Exception):
                    raise res
                out.append(Verdict(valid=False, explanation=str(res) or MSG_GENERIC))
            else:
                out.append(res)
        return out
