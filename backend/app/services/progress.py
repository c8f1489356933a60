from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable

APPROVED = "approved"


@dataclass(frozen=True)
class BountyProgress:
    """
    Read-time progress of a bounty, derived only from its approved submissions.

    is_completed is evaluated on the uncapped used_budget, so a bounty whose
    total_bounty is 0 counts as completed even with no views.
    """
    total_views: int
    used_budget: float
    capped_used_budget: float
    percentage: float
    is_completed: bool


def submission_earnings(view_count: int | None, rate_per_1k_views: float | None) -> float:
    """Payout for one submission. Not capped; capping only happens in aggregate."""
    return (int(view_count or 0) / 1000) * float(rate_per_1k_views or 0)


def compute_bounty_progress(bounty: Any, submissions: Iterable[Any]) -> BountyProgress:
    """
    `bounty` needs total_bounty and rate_per_1k_views; each submission needs
    status and view_count. Works on ORM rows and plain objects alike.
    """
    total_views = sum(int(s.view_count or 0) for s in submissions if s.status == APPROVED)

    total_bounty = float(bounty.total_bounty or 0)
    used = submission_earnings(total_views, bounty.rate_per_1k_views)
    capped = min(used, total_bounty)
    percentage = min(used / total_bounty * 100, 100.0) if total_bounty > 0 else 0.0

    return BountyProgress(
        total_views=total_views,
        used_budget=used,
        capped_used_budget=capped,
        percentage=percentage,
        is_completed=used >= total_bounty,
    )
