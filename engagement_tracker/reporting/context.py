"""Context dataclass for rendering the weekly metrics digest.

`DigestContext` holds every value expected by the Jinja2 template
`engagement_tracker/reporting/templates/digest.md.j2`.  Keeping context
building apart from rendering lets the business rules (caps, ordering,
formatting of numbers) be tested without touching template strings.
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from datetime import datetime as _dt
from datetime import timezone as _tz
from typing import Any, Dict, List, Optional

from engagement_tracker import config
from engagement_tracker.reporting.models import CombinedReport

__all__ = [
    "Headline",
    "DigestContext",
    "build_digest_context",
]


@dataclass(slots=True)
class Headline:
    """Scalar indicators shown at the top of the digest."""

    active_contributors: int
    total_contributions: int
    weekly_change: int
    nps_score: int
    engagement_rate: int
    satisfaction_score: int
    active_tech_partners: int

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        return asdict(self)


@dataclass(slots=True)
class DigestContext:
    """Container with all fields used by the digest template."""

    # Header & meta
    title: str
    date: str  # ISO-8601 date string (UTC)
    headline: Headline

    # Per-week rows (already formatted dicts)
    weeks: List[Dict[str, Any]] = field(default_factory=list)
    partners: List[Dict[str, Any]] = field(default_factory=list)
    top_performers: List[Dict[str, Any]] = field(default_factory=list)
    action_items: List[Dict[str, str]] = field(default_factory=list)
    sentiment: Dict[str, int] = field(default_factory=dict)

    # Optional AI insights
    insights: Optional[Dict[str, Any]] = None

    version: str = "1"

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        """Return a *plain* ``dict`` (recursively) for Jinja rendering."""
        return asdict(self)

    __call__ = to_dict


def _signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


def build_digest_context(combined: CombinedReport) -> DigestContext:
    """Convert a :class:`CombinedReport` into a :class:`DigestContext`.

    Only the most recent ``MAX_DIGEST_WEEKS`` weeks and the first
    ``MAX_ACTION_ITEMS`` action items are kept.
    """

    report = combined.report
    growth = {g.week: g for g in report.contributor_growth}

    weeks: List[Dict[str, Any]] = []
    for trend in report.engagement_trends[-config.MAX_DIGEST_WEEKS :]:
        row = growth.get(trend.week)
        weeks.append(
            {
                "week": trend.week,
                "participants": trend.total,
                "high": trend.high,
                "medium": trend.medium,
                "low": trend.low,
                "contributions": row.total_contributions if row else 0,
                "new_contributors": row.new_contributors if row else 0,
            }
        )

    partners = [
        {
            "partner": p.partner,
            "issues": p.issues,
            "contributors": p.active_contributors,
            "completion_rate": f"{p.completion_rate:.2f}",
        }
        for p in report.tech_partner_performance
    ]

    title = f"PLDG metrics – {combined.cohort_id}" if combined.cohort_id else "PLDG metrics"

    return DigestContext(
        title=title,
        date=_dt.now(tz=_tz.utc).strftime("%Y-%m-%d"),
        headline=Headline(
            active_contributors=report.active_contributors,
            total_contributions=report.total_contributions,
            weekly_change=report.weekly_change,
            nps_score=report.nps_score,
            engagement_rate=report.engagement_rate,
            satisfaction_score=report.satisfaction_score,
            active_tech_partners=report.active_tech_partners,
        ),
        weeks=weeks,
        partners=partners,
        top_performers=[
            {
                "name": p.name,
                "total_issues": p.total_issues,
                "avg_engagement": round(p.avg_engagement),
            }
            for p in report.top_performers
        ],
        action_items=[a.to_dict() for a in report.action_items[: config.MAX_ACTION_ITEMS]],
        sentiment=report.feedback_sentiment.to_dict(),
        insights=combined.insights.to_dict() if combined.insights else None,
        version=os.getenv("REPORT_VERSION", "1"),
    )


def weekly_change_label(value: int) -> str:
    """``+12%`` / ``-3%`` / ``0%``."""
    return f"{_signed(value)}%"
