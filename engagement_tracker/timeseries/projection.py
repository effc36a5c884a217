"""Project a :class:`MetricsReport` onto the persisted trend series."""
from __future__ import annotations

import datetime
from typing import Dict, List, Sequence

from engagement_tracker.reporting.models import MetricsReport, WeeklyMetrics
from engagement_tracker.reporting.weeks import parse_week_number
from engagement_tracker.timeseries.models import TrendPoint, WeekData, to_iso

TOTAL_ENGAGEMENT = "total-engagement"
CONTRIBUTION_COUNT = "contribution-count"
TECH_PARTNER_ENGAGEMENT = "tech-partner-engagement"


def week_timestamp(cohort_start: datetime.datetime, week_label: str) -> str:
    """Week *n* starts ``n - 1`` weeks after the cohort start (week 0 at the start)."""
    offset = max(parse_week_number(week_label) - 1, 0)
    return to_iso(cohort_start + datetime.timedelta(weeks=offset))


def project_trends(
    report: MetricsReport, cohort_start: datetime.datetime
) -> Dict[str, List[TrendPoint]]:
    """Return one point per week for each persisted metric type."""

    collaborations: Dict[str, int] = {}
    for row in report.tech_partner_activity:
        collaborations[row.week] = collaborations.get(row.week, 0) + row.collaborations

    return {
        TOTAL_ENGAGEMENT: [
            TrendPoint(week_timestamp(cohort_start, t.week), t.total)
            for t in report.engagement_trends
        ],
        CONTRIBUTION_COUNT: [
            TrendPoint(week_timestamp(cohort_start, p.week), p.total_issues)
            for p in report.technical_progress
        ],
        TECH_PARTNER_ENGAGEMENT: [
            TrendPoint(week_timestamp(cohort_start, t.week), collaborations.get(t.week, 0))
            for t in report.engagement_trends
        ],
    }


def build_week_summaries(
    weekly: Sequence[WeeklyMetrics], report: MetricsReport
) -> List[WeekData]:
    """Combine weekly pipeline summaries with the report's engagement rows."""

    engagement = {t.week: t for t in report.engagement_trends}
    growth = {g.week: g for g in report.contributor_growth}
    summaries: List[WeekData] = []
    for week in weekly:
        trend = engagement.get(week.week)
        grow = growth.get(week.week)
        summaries.append(
            WeekData(
                week_number=week.week_number,
                week_label=week.week,
                metrics={
                    "engagement": {
                        "totalParticipants": trend.total if trend else 0,
                        "activeContributors": grow.active_contributors if grow else 0,
                        "sessionAttendance": dict(week.session_attendance),
                        "participationLevel": {
                            "high": trend.high if trend else 0,
                            "medium": trend.medium if trend else 0,
                            "low": trend.low if trend else 0,
                        },
                    },
                    "contributions": {
                        "total": week.issue_total,
                        "byTechPartner": dict(week.contributions_by_partner),
                        # high: 3+ contributions, medium: 1-2, low: none
                        "participationLevels": dict(week.participation_levels),
                        "issues": {
                            "total": week.issue_total,
                            "details": list(week.issue_details),
                        },
                    },
                },
            )
        )
    return summaries
