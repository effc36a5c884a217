"""Tech-partner metrics derived from participation records."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence

from engagement_tracker.records import ParticipationRecord
from engagement_tracker.reporting.models import (
    TechPartnerActivity,
    TechPartnerMetrics,
    TechPartnerPerformance,
)
from engagement_tracker.reporting.weeks import format_week, group_by_week, sorted_week_keys

# Weights of the collaboration score components
_SCORE_WEIGHTS = {"issues": 0.4, "satisfaction": 0.3, "engagement": 0.3}


def calculate_tech_partner_performance(
    records: Sequence[ParticipationRecord],
) -> List[TechPartnerPerformance]:
    """Return per-partner issue and contributor counts for collaborating records.

    ``active_contributors`` counts qualifying *records*, so the same person
    reporting in two weeks counts twice.  ``completion_rate`` is contributors
    per issue, the metric the partner charts were built around.
    """

    partners: Dict[str, TechPartnerPerformance] = {}
    for record in records:
        if not (record.collaborated and record.tech_partners):
            continue
        for partner in record.tech_partners:
            current = partners.setdefault(
                partner,
                TechPartnerPerformance(
                    partner=partner, issues=0, active_contributors=0, completion_rate=0
                ),
            )
            current.issues += record.contribution_count
            current.active_contributors += 1

    for perf in partners.values():
        perf.completion_rate = (
            perf.active_contributors / perf.issues if perf.issues > 0 else 0
        )
    return list(partners.values())


def process_tech_partner_activity(
    records: Sequence[ParticipationRecord],
) -> List[TechPartnerActivity]:
    """Return one row per (week, partner) pair, weeks in ordinal order."""

    weekly = group_by_week(records)
    rows: List[TechPartnerActivity] = []
    for week in sorted_week_keys(weekly):
        by_partner: Dict[str, List[ParticipationRecord]] = defaultdict(list)
        for record in weekly[week]:
            by_partner[record.partner_label].append(record)
        for partner, entries in by_partner.items():
            rows.append(
                TechPartnerActivity(
                    week=format_week(week),
                    partner=partner,
                    issues=sum(e.contribution_count for e in entries),
                    contributions=len(entries),
                    collaborations=sum(1 for e in entries if e.collaborated),
                )
            )
    return rows


def calculate_collaboration_score(entries: Sequence[ParticipationRecord]) -> float:
    """Weighted blend of issue volume, collaboration satisfaction and engagement.

    Scaled to 0–100 for typical inputs (10 issues, satisfaction 5, level 3
    each saturate their component).  Returns 0 for an empty group.
    """

    if not entries:
        return 0.0
    count = len(entries)
    avg_issues = sum(e.contribution_count for e in entries) / count
    avg_satisfaction = sum(e.collaboration_satisfaction for e in entries) / count
    avg_engagement = sum(e.engagement_level for e in entries) / count

    return (
        (avg_issues / 10) * _SCORE_WEIGHTS["issues"]
        + (avg_satisfaction / 5) * _SCORE_WEIGHTS["satisfaction"]
        + (avg_engagement / 3) * _SCORE_WEIGHTS["engagement"]
    ) * 100


def process_tech_partner_metrics(
    records: Sequence[ParticipationRecord],
) -> List[TechPartnerMetrics]:
    """Summarize collaborating records grouped by partner affiliation."""

    grouped: Dict[str, List[ParticipationRecord]] = defaultdict(list)
    for record in records:
        if record.collaborated:
            grouped[record.partner_label].append(record)

    metrics: List[TechPartnerMetrics] = []
    for partner, entries in grouped.items():
        total_issues = sum(e.contribution_count for e in entries)
        active = len({e.name for e in entries})
        metrics.append(
            TechPartnerMetrics(
                partner=partner,
                total_issues=total_issues,
                active_contributors=active,
                avg_issues_per_contributor=total_issues / active if active > 0 else 0,
                collaboration_rate=len(entries) / len(records) if records else 0,
                collaboration_score=calculate_collaboration_score(entries),
            )
        )
    return metrics
