from __future__ import annotations
import asyncio
import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable
import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel, Field, ValidationError
from app.config import settings
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.services.progress import BountyProgress

log = structlog.get_logger()

THEME_KEYWORDS = [
    "tech", "technology", "review", "tutorial", "how to", "unboxing",
    "gaming", "game", "play", "stream", "entertainment", "comedy",
    "fashion", "style", "outfit", "beauty", "makeup", "skincare",
    "food", "cooking", "recipe", "restaurant", "travel", "adventure",
    "fitness", "workout", "health", "lifestyle", "product", "demo",
]
MAX_THEMES = 10
TOP_SUBMISSIONS = 10

FALLBACK_DEFAULT_REASON = "General recommendation based on your profile"


@dataclass
class CreatorProfile:
    user_id: str
    platforms: list[str] = field(default_factory=list)
    platform_distribution: dict[str, int] = field(default_factory=dict)
    avg_view_count: float = 0.0
    total_submissions: int = 0
    approved_submissions: int = 0
    success_rate: float = 0.0
    submission_titles: list[str] = field(default_factory=list)
    submission_descriptions: list[str] = field(default_factory=list)
    top_submissions: list[dict] = field(default_factory=list)
    content_themes: list[str] = field(default_factory=list)


class MatchResult(BaseModel):
    match_score: float = Field(description="0-100, how well this bounty fits the creator")
    reasons: list[str] = Field(description="3-5 specific reasons for the score")
    platform_compatibility: bool = Field(description="Creator has experience on the platforms this bounty targets")
    content_style_alignment: bool = Field(description="Creator's content style fits what the bounty asks for")
    explanation: str = Field(description="Short summary of the assessment")


def extract_content_themes(titles: Iterable[str], descriptions: Iterable[str]) -> list[str]:
    text = " ".join([*titles, *descriptions]).lower()
    return [kw for kw in THEME_KEYWORDS if kw in text][:MAX_THEMES]


def analyze_creator_profile(user_id: str, submissions: list[Submission]) -> CreatorProfile:
    """Summarize a creator's submission history for matching. Empty history gives an empty profile."""
    if not submissions:
        return CreatorProfile(user_id=user_id)

    total = len(submissions)
    approved = sum(1 for s in submissions if s.status == "approved")
    total_views = sum(int(s.view_count or 0) for s in submissions)

    dist = Counter(s.platform or "other" for s in submissions)
    titles = [s.title for s in submissions if s.title and s.title.strip()]
    descriptions = [s.description for s in submissions if s.description and s.description.strip()]
    top = sorted(
        (
            {"title": s.title, "description": s.description, "view_count": int(s.view_count or 0), "platform": s.platform}
            for s in submissions
        ),
        key=lambda d: d["view_count"],
        reverse=True,
    )[:TOP_SUBMISSIONS]

    return CreatorProfile(
        user_id=user_id,
        platforms=list(dist.keys()),
        platform_distribution=dict(dist),
        avg_view_count=total_views / total,
        total_submissions=total,
        approved_submissions=approved,
        success_rate=approved / total,
        submission_titles=titles,
        submission_descriptions=descriptions,
        top_submissions=top,
        content_themes=extract_content_themes(titles, descriptions),
    )


def fallback_match(profile: CreatorProfile, bounty: Bounty) -> MatchResult:
    """Rule-based score used when the model is unavailable or fails."""
    score = 50.0
    reasons: list[str] = []
    platform_ok = False
    style_ok = False

    if profile.platforms:
        platform_ok = True
        score += 20
        reasons.append(f"You have experience creating content on {', '.join(profile.platforms)}")

    if profile.avg_view_count > 1000:
        score += 15
        reasons.append(f"Your average view count of {profile.avg_view_count:,.0f} shows strong performance")

    if profile.success_rate > 0.7:
        score += 10
        reasons.append(f"High approval rate of {profile.success_rate * 100:.0f}%")

    bounty_words = set(f"{bounty.name} {bounty.description} {bounty.instructions or ''}".lower().split())
    theme_words = set(" ".join(profile.content_themes).lower().split())
    if any(len(w) > 3 for w in bounty_words & theme_words):
        style_ok = True
        score += 15
        reasons.append("Content themes align with this bounty")

    return MatchResult(
        match_score=min(100.0, score),
        reasons=reasons or [FALLBACK_DEFAULT_REASON],
        platform_compatibility=platform_ok,
        content_style_alignment=style_ok,
        explanation=f"Fallback matching: {'; '.join(reasons)}",
    )


def _creator_summary(p: CreatorProfile) -> str:
    top = "\n".join(
        f'- "{s["title"] or "Untitled"}" ({s["view_count"]:,} views, {s["platform"]})' for s in p.top_submissions[:5]
    )
    recent = "\n".join(f"- {t}" for t in p.submission_titles[:10])
    return (
        f"Platforms Used: {', '.join(p.platforms)}\n"
        f"Platform Distribution: {json.dumps(p.platform_distribution)}\n"
        f"Total Submissions: {p.total_submissions}\n"
        f"Approved Submissions: {p.approved_submissions}\n"
        f"Success Rate: {p.success_rate * 100:.1f}%\n"
        f"Average View Count: {p.avg_view_count:,.0f}\n\n"
        f"Top Performing Submissions:\n{top}\n\n"
        f"Recent Submission Titles:\n{recent}\n\n"
        f"Content Themes: {', '.join(p.content_themes) or 'Not yet analyzed'}"
    )


def _bounty_summary(b: Bounty, progress: BountyProgress) -> str:
    return (
        f"Bounty Name: {b.name}\n"
        f"Description: {b.description}\n"
        f"Instructions: {b.instructions or 'No specific instructions'}\n"
        f"Total Bounty: ${float(b.total_bounty):,.2f}\n"
        f"Rate per 1k Views: ${float(b.rate_per_1k_views):,.2f}\n"
        f"Progress: {progress.percentage:.1f}% complete\n"
        f"Company: {b.company_name or 'Unknown'}"
    )


def build_match_prompt(profile: CreatorProfile, bounty: Bounty, progress: BountyProgress) -> str:
    return f"""
You rank paid UGC bounties for a content creator. Judge how well the creator below fits the bounty.

CREATOR PROFILE:
{_creator_summary(profile)}

BOUNTY OPPORTUNITY:
{_bounty_summary(bounty, progress)}

Weigh platform experience (YouTube, TikTok, Instagram), content style and themes, and past performance
(views, approval rate).

Scoring: 90-100 excellent, 70-89 good, 50-69 moderate, 30-49 weak, 0-29 poor.
Give 3-5 concrete reasons that reference the creator's actual numbers and titles, for example
"Your average view count of 50k fits this bounty's audience" or
"Platform mismatch: this bounty targets Instagram but you mostly post on YouTube".
"""


class CreatorMatcher:
    def __init__(self, client: genai.Client | None, model: str | None = None):
        self.client = client
        self.model = model or settings.gemini_model

    async def match(self, profile: CreatorProfile, bounty: Bounty, progress: BountyProgress) -> MatchResult:
        if self.client is None:
            return fallback_match(profile, bounty)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=build_match_prompt(profile, bounty, progress),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=MatchResult,
                ),
            )
            result = MatchResult.model_validate_json(response.text or "")
        except (genai_errors.APIError, httpx.HTTPError, ValidationError, ValueError) as e:
            log.warning("ai_match_failed", bounty_id=str(bounty.id), error=str(e))
            return fallback_match(profile, bounty)

        result.match_score = max(0.0, min(100.0, result.match_score))
        return result

    async def match_many(
        self, profile: CreatorProfile, bounties: list[tuple[Bounty, BountyProgress]]
    ) -> list[tuple[Bounty, BountyProgress, MatchResult]]:
        results = await asyncio.gather(*(self.match(profile, b, p) for b, p in bounties))
        return [(b, p, r) for (b, p), r in zip(bounties, results)]
