"""Unit tests for reporting.partners."""

from __future__ import annotations

import pytest

from engagement_tracker import records as rec
from engagement_tracker.reporting.partners import (
    calculate_collaboration_score,
    calculate_tech_partner_performance,
    process_tech_partner_activity,
    process_tech_partner_metrics,
)


def test_completion_rate_is_contributors_per_issue(make_record):
    records = [
        make_record(name="A", contributions="2", partner="Partner A", collaborated=True),
        make_record(name="B", contributions="3", partner="Partner A", collaborated=True),
    ]
    (perf,) = calculate_tech_partner_performance(records)

    assert perf.partner == "Partner A"
    assert perf.issues == 5
    assert perf.active_contributors == 2
    assert perf.completion_rate == pytest.approx(0.4)


def test_active_contributors_counts_each_weekly_report(make_record):
    records = [
        make_record(name="Alice", week="Week 1", contributions="1", partner="Partner A", collaborated=True),
        make_record(name="Alice", week="Week 2", contributions="1", partner="Partner A", collaborated=True),
    ]
    (perf,) = calculate_tech_partner_performance(records)

    assert perf.active_contributors == 2
    assert perf.completion_rate == pytest.approx(1.0)


def test_performance_skips_non_collaborating_records(make_record):
    records = [
        make_record(partner="Partner A", contributions="4"),
        make_record(partner=None, collaborated=True, contributions="4"),
    ]
    assert calculate_tech_partner_performance(records) == []


def test_performance_expands_multi_partner_records(make_record):
    records = [
        make_record(contributions="0", partner=["Partner A", "Partner B"], collaborated=True),
    ]
    perfs = {p.partner: p for p in calculate_tech_partner_performance(records)}

    assert set(perfs) == {"Partner A", "Partner B"}
    assert perfs["Partner B"].completion_rate == 0


def test_activity_rows_per_week_and_affiliation(sample_records):
    rows = [a.to_dict() for a in process_tech_partner_activity(sample_records)]

    assert rows == [
        {"week": "Week 1", "partner": "Partner A", "issues": 2, "contributions": 1, "collaborations": 1},
        {"week": "Week 1", "partner": "Unknown", "issues": 0, "contributions": 1, "collaborations": 0},
        {"week": "Week 2", "partner": "Partner A", "issues": 3, "contributions": 1, "collaborations": 1},
        {"week": "Week 2", "partner": "Unknown", "issues": 1, "contributions": 1, "collaborations": 0},
    ]


def test_collaboration_score_weights(make_record):
    entry = make_record(
        contributions="10",
        **{rec.FIELD_COLLAB_SATISFACTION: "5", rec.FIELD_ENGAGEMENT_LEVEL: "3"},
    )
    assert calculate_collaboration_score([entry]) == pytest.approx(100.0)
    assert calculate_collaboration_score([]) == 0.0


def test_partner_metrics_for_collaborators(sample_records):
    (metrics,) = process_tech_partner_metrics(sample_records)

    assert metrics.partner == "Partner A"
    assert metrics.total_issues == 5
    assert metrics.active_contributors == 1
    assert metrics.avg_issues_per_contributor == 5
    assert metrics.collaboration_rate == pytest.approx(0.5)
    # 2.5 issues on average, no satisfaction or level answers
    assert metrics.collaboration_score == pytest.approx(10.0)
