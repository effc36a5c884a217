"""Aggregate participation records into a structured :class:`MetricsReport`."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from engagement_tracker import config
from engagement_tracker.exceptions import EmptyInputError
from engagement_tracker.records import ActivitySnapshot, ParticipationRecord
from engagement_tracker.reporting.models import (
    ActionItem,
    ContributorGrowth,
    EngagementTrend,
    FeedbackSentiment,
    IssueProgress,
    MetricsReport,
    ProgramHealth,
    TechnicalProgress,
    TopPerformer,
    WeeklyMetrics,
)
from engagement_tracker.reporting.partners import (
    calculate_tech_partner_performance,
    process_tech_partner_activity,
    process_tech_partner_metrics,
)
from engagement_tracker.reporting.weeks import (
    format_week,
    group_by_week,
    parse_week_number,
    round_half_up,
    sorted_week_keys,
)

logger = logging.getLogger(__name__)


def _recent(records: Sequence[ParticipationRecord]) -> Sequence[ParticipationRecord]:
    """Return the most recent ``RECENT_WINDOW`` records (input order)."""
    if config.RECENT_WINDOW <= 0:
        return records
    return records[-config.RECENT_WINDOW :]


def _percent(count: int, total: int) -> int:
    return round_half_up(count / total * 100) if total else 0


def _contributions(records: Sequence[ParticipationRecord]) -> int:
    return sum(r.contribution_count for r in records)


# ---------------------------------------------------------------------------
# Scalar indicators
# ---------------------------------------------------------------------------
def calculate_weekly_change(records: Sequence[ParticipationRecord]) -> int:
    """Percent change in contributions between the two most recent weeks.

    Returns 0 with fewer than two weeks and 100 when the previous week had no
    contributions.
    """

    weekly = group_by_week(records)
    weeks = sorted_week_keys(weekly, newest_first=True)
    if len(weeks) < 2:
        return 0

    current_total = _contributions(weekly[weeks[0]])
    previous_total = _contributions(weekly[weeks[1]])
    if previous_total == 0:
        return 100
    return round_half_up((current_total - previous_total) / previous_total * 100)


def calculate_nps_score(records: Sequence[ParticipationRecord]) -> int:
    """Net Promoter Score over all recommend-likelihood answers.

    A lone answer is returned as-is rather than as a percentage.
    """

    scores = [r.recommend_score for r in records if r.recommend_score is not None]
    if not scores:
        return 0
    if len(scores) == 1:
        return scores[0]

    promoters = sum(1 for s in scores if s >= 9)
    detractors = sum(1 for s in scores if s <= 6)
    return round_half_up((promoters - detractors) / len(scores) * 100)


def calculate_engagement_rate(records: Sequence[ParticipationRecord]) -> int:
    recent = _recent(records)
    return _percent(sum(1 for r in recent if r.is_engaged), len(recent))


def calculate_satisfaction_rate(records: Sequence[ParticipationRecord]) -> int:
    recent = _recent(records)
    return _percent(sum(1 for r in recent if r.satisfaction_score >= 8), len(recent))


def _distinct_partners(records: Sequence[ParticipationRecord]) -> int:
    return len({p for r in records for p in r.tech_partners})


def calculate_program_health(records: Sequence[ParticipationRecord]) -> ProgramHealth:
    return ProgramHealth(
        nps_score=calculate_nps_score(records),
        engagement_rate=calculate_engagement_rate(records),
        satisfaction_score=calculate_satisfaction_rate(records),
        active_tech_partners=_distinct_partners(records),
    )


# ---------------------------------------------------------------------------
# Per-week sequences
# ---------------------------------------------------------------------------
def process_engagement_trends(records: Sequence[ParticipationRecord]) -> List[EngagementTrend]:
    weekly = group_by_week(records)
    trends: List[EngagementTrend] = []
    for week in sorted_week_keys(weekly):
        entries = weekly[week]
        trends.append(
            EngagementTrend(
                week=format_week(week),
                high=sum(1 for e in entries if e.is_high_engagement),
                medium=sum(1 for e in entries if e.is_medium_engagement),
                low=sum(1 for e in entries if e.is_low_engagement),
                total=len(entries),
            )
        )
    return trends


def process_technical_progress(records: Sequence[ParticipationRecord]) -> List[TechnicalProgress]:
    weekly = group_by_week(records)
    return [
        TechnicalProgress(week=format_week(week), total_issues=_contributions(weekly[week]))
        for week in sorted_week_keys(weekly)
    ]


def process_contributor_growth(records: Sequence[ParticipationRecord]) -> List[ContributorGrowth]:
    """Weekly contributor counts; a contributor is *new* if absent the week before."""

    weekly = group_by_week(records)
    growth: List[ContributorGrowth] = []
    previous_names: set[str] = set()
    for week in sorted_week_keys(weekly):
        entries = weekly[week]
        names = {e.name for e in entries}
        active = len(names)
        total = _contributions(entries)
        growth.append(
            ContributorGrowth(
                week=format_week(week),
                total_contributions=total,
                active_contributors=active,
                contributions_per_dev=round_half_up(total / active) if active > 0 else 0,
                new_contributors=len(names - previous_names),
            )
        )
        previous_names = names
    return growth


def compute_weekly_metrics(records: Sequence[ParticipationRecord]) -> List[WeeklyMetrics]:
    """Per-week attendance, participation levels, issues and partner totals."""

    weekly = group_by_week(records)
    summaries: List[WeeklyMetrics] = []
    for week in sorted_week_keys(weekly):
        entries = weekly[week]
        attendance: Counter[str] = Counter()
        levels = {"high": 0, "medium": 0, "low": 0}
        by_partner: Dict[str, int] = {}
        for entry in entries:
            attendance.update(entry.sessions_attended)
            if entry.contribution_count >= 3:
                levels["high"] += 1
            elif entry.contribution_count >= 1:
                levels["medium"] += 1
            else:
                levels["low"] += 1
            for partner in entry.tech_partners:
                by_partner[partner] = by_partner.get(partner, 0) + entry.contribution_count

        summaries.append(
            WeeklyMetrics(
                week=format_week(week),
                week_number=parse_week_number(week),
                session_attendance=dict(attendance),
                participation_levels=levels,
                issue_total=_contributions(entries),
                issue_details=[e.issue.to_dict() for e in entries if e.issue is not None],
                contributions_by_partner=by_partner,
            )
        )
    return summaries


# ---------------------------------------------------------------------------
# Recent-window feedback
# ---------------------------------------------------------------------------
def process_feedback_sentiment(records: Sequence[ParticipationRecord]) -> FeedbackSentiment:
    recent = _recent(records)
    total = len(recent)
    return FeedbackSentiment(
        positive=_percent(sum(1 for r in recent if r.satisfaction_score >= 8), total),
        neutral=_percent(sum(1 for r in recent if 6 <= r.satisfaction_score < 8), total),
        negative=_percent(sum(1 for r in recent if r.satisfaction_score < 6), total),
    )


def calculate_action_items(records: Sequence[ParticipationRecord]) -> List[ActionItem]:
    """Rule-based warnings; checks are independent and may all fire."""

    recent = _recent(records)
    items: List[ActionItem] = []

    low_engagement = sum(1 for r in recent if r.is_low_engagement)
    if low_engagement > len(recent) * config.LOW_ENGAGEMENT_THRESHOLD:
        items.append(
            ActionItem(
                type="warning",
                title="Low Engagement Alert",
                description=f"{low_engagement} participants showing low engagement levels",
                action="Review engagement strategies and reach out to affected participants",
            )
        )

    low_satisfaction = sum(1 for r in recent if r.satisfaction_score < 6)
    if low_satisfaction > 0:
        items.append(
            ActionItem(
                type="warning",
                title="Satisfaction Concerns",
                description=f"{low_satisfaction} participants reported low satisfaction",
                action="Schedule 1:1 check-ins with affected participants",
            )
        )

    blocked = sum(1 for r in recent if r.blocking_progress.strip())
    if blocked > 0:
        items.append(
            ActionItem(
                type="warning",
                title="Progress Blockers",
                description=f"{blocked} participants reported blockers",
                action="Review reported blockers and coordinate with tech partners",
            )
        )

    return items


def calculate_top_performers(records: Sequence[ParticipationRecord]) -> List[TopPerformer]:
    by_name: Dict[str, List[ParticipationRecord]] = {}
    for record in records:
        by_name.setdefault(record.name, []).append(record)

    performers = [
        TopPerformer(
            name=name,
            total_issues=_contributions(entries),
            avg_engagement=sum(1 for e in entries if e.is_engaged) / len(entries) * 100,
        )
        for name, entries in by_name.items()
    ]
    performers.sort(key=lambda p: p.total_issues, reverse=True)
    return performers[: config.TOP_PERFORMERS_LIMIT]


def process_issue_progress(activity: Optional[ActivitySnapshot]) -> List[IssueProgress]:
    """Status-group breakdown of the project board (empty without a snapshot)."""

    if activity is None:
        return []
    groups = activity.status_groups
    total = groups.total
    return [
        IssueProgress(category=label, count=count, percent_complete=_percent(count, total))
        for label, count in (
            ("To Do", groups.todo),
            ("In Progress", groups.in_progress),
            ("Done", groups.done),
        )
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def compute_report(
    records: Sequence[ParticipationRecord],
    activity: Optional[ActivitySnapshot] = None,
) -> MetricsReport:
    """Convert *records* (and an optional *activity* snapshot) into a report.

    The function is read-only; it does not mutate its inputs.

    Raises
    ------
    EmptyInputError
        If *records* is empty.
    """

    if not records:
        raise EmptyInputError()

    records = list(records)
    health = calculate_program_health(records)
    report = MetricsReport(
        weekly_change=calculate_weekly_change(records),
        participation_rate=health.engagement_rate,
        active_contributors=len({r.name for r in records}),
        total_contributions=_contributions(records),
        program_health=health,
        engagement_trends=process_engagement_trends(records),
        technical_progress=process_technical_progress(records),
        tech_partner_metrics=process_tech_partner_metrics(records),
        tech_partner_activity=process_tech_partner_activity(records),
        tech_partner_performance=calculate_tech_partner_performance(records),
        contributor_growth=process_contributor_growth(records),
        feedback_sentiment=process_feedback_sentiment(records),
        action_items=calculate_action_items(records),
        top_performers=calculate_top_performers(records),
        issue_progress=process_issue_progress(activity),
    )
    logger.debug(
        "Computed report records=%d weeks=%d partners=%d",
        len(records),
        len(report.contributor_growth),
        len(report.tech_partner_performance),
    )
    return report
