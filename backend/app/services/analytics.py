from __future__ import annotations
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Iterable, Literal
from app.models.bounty import Bounty
from app.models.submission import Submission
from app.services.progress import APPROVED, compute_bounty_progress

DateRange = Literal["7d", "30d", "90d", "all"]
RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_RANGE: DateRange = "30d"
STATUSES = ("pending", "approved", "rejected")
TOP_BOUNTIES = 5


def normalize_range(value: str | None) -> DateRange:
    return value if value in ("7d", "30d", "90d", "all") else DEFAULT_RANGE


def date_bounds(date_range: DateRange, now: datetime | None = None) -> tuple[datetime | None, datetime]:
    """(start, end) for a range; start is None for 'all'."""
    end = now or datetime.now(timezone.utc)
    days = RANGE_DAYS.get(date_range)
    return (end - timedelta(days=days) if days else None), end


def _aware(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes; stored values are UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def in_range(dt: datetime | None, start: datetime | None, end: datetime) -> bool:
    if dt is None:
        return start is None
    dt = _aware(dt)
    return (start is None or dt >= start) and dt <= end


def _pct(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def creator_analytics(submissions: Iterable[Submission], bounty_names: dict) -> dict:
    """Summary, platform/status breakdowns and top bounties for one creator's submissions."""
    subs = list(submissions)
    total = len(subs)
    approved = [s for s in subs if s.status == APPROVED]
    total_earnings = sum(float(s.earned_amount or 0) for s in subs)
    total_views = sum(int(s.view_count or 0) for s in subs)

    by_platform: dict[str, dict] = defaultdict(lambda: {"count": 0, "earnings": 0.0, "views": 0})
    for s in subs:
        row = by_platform[s.platform or "other"]
        row["count"] += 1
        row["earnings"] += float(s.earned_amount or 0)
        row["views"] += int(s.view_count or 0)
    platform_breakdown = sorted(
        ({"platform": p, **row, "percentage": _pct(row["count"], total)} for p, row in by_platform.items()),
        key=lambda r: r["count"],
        reverse=True,
    )

    status_counts = {st: 0 for st in STATUSES}
    for s in subs:
        status_counts[s.status] = status_counts.get(s.status, 0) + 1
    status_breakdown = [
        {"status": st, "count": n, "percentage": _pct(n, total)} for st, n in status_counts.items()
    ]

    per_bounty: dict = defaultdict(lambda: {"earnings": 0.0, "views": 0, "submissions": 0})
    for s in subs:
        row = per_bounty[s.bounty_id]
        row["earnings"] += float(s.earned_amount or 0)
        row["views"] += int(s.view_count or 0)
        row["submissions"] += 1
    top_bounties = sorted(
        ({"id": bid, "name": bounty_names.get(bid, "Unknown bounty"), **row} for bid, row in per_bounty.items()),
        key=lambda r: r["earnings"],
        reverse=True,
    )[:TOP_BOUNTIES]

    return {
        "total_earnings": total_earnings,
        "total_views": total_views,
        "total_submissions": total,
        "approved_submissions": len(approved),
        "average_earnings_per_submission": total_earnings / total if total else 0.0,
        "approval_rate": _pct(len(approved), total),
        "platform_breakdown": platform_breakdown,
        "status_breakdown": status_breakdown,
        "top_bounties": top_bounties,
    }


def campaign_performance(bounty: Bounty) -> dict:
    subs = list(bounty.submissions)
    progress = compute_bounty_progress(bounty, subs)
    spend = progress.capped_used_budget
    approved = sum(1 for s in subs if s.status == APPROVED)
    return {
        "id": bounty.id,
        "name": bounty.name,
        "total_spend": spend,
        "total_views": progress.total_views,
        "submissions": len(subs),
        "views_per_dollar": progress.total_views / spend if spend > 0 else 0.0,
        "budget_utilization": _pct(spend, float(bounty.total_bounty or 0)),
        "approval_rate": _pct(approved, len(subs)),
        "is_completed": progress.is_completed,
    }


def business_analytics(bounties: Iterable[Bounty]) -> dict:
    """Per-campaign spend and reach for a business's bounties, plus totals."""
    campaigns = sorted((campaign_performance(b) for b in bounties), key=lambda c: c["total_views"], reverse=True)
    n = len(campaigns)
    total_spend = sum(c["total_spend"] for c in campaigns)
    total_views = sum(c["total_views"] for c in campaigns)
    total_submissions = sum(c["submissions"] for c in campaigns)
    completed = sum(1 for c in campaigns if c["is_completed"])
    return {
        "campaign_performance": campaigns,
        "total_spend": total_spend,
        "total_views": total_views,
        "total_submissions": total_submissions,
        "average_views_per_submission": total_views / total_submissions if total_submissions else 0.0,
        "average_views_per_dollar": sum(c["views_per_dollar"] for c in campaigns) / n if n else 0.0,
        "active_campaigns": n - completed,
        "completed_campaigns": completed,
        "completion_rate": _pct(completed, n),
    }
