from __future__ import annotations
from typing import AsyncGenerator
import httpx
from fastapi import Depends
from google import genai
from redis import Redis
from rq import Queue
from app.config import settings
from app.services.content_validation import ContentValidator
from app.services.matching import CreatorMatcher
from app.services.view_counts import ViewCounter


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        yield client


def get_genai_client() -> genai.Client | None:
    """None when GEMINI_API_KEY is unset; callers decide whether that is fatal."""
    if not settings.gemini_api_key:
        return None
    return genai.Client(api_key=settings.gemini_api_key)


def get_view_counter(http: httpx.AsyncClient = Depends(get_http_client)) -> ViewCounter:
    return ViewCounter(http, settings)


def get_validator(client: genai.Client | None = Depends(get_genai_client)) -> ContentValidator:
    return ContentValidator(client)


def get_matcher(client: genai.Client | None = Depends(get_genai_client)) -> CreatorMatcher:
    return CreatorMatcher(client)


def get_queue() -> Queue:
    return Queue("default", connection=Redis.from_url(settings.redis_url))
