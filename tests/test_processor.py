"""Tests for MetricsProcessor orchestration."""
from __future__ import annotations

import datetime

import pytest

from engagement_tracker.exceptions import EmptyInputError
from engagement_tracker.processor import (
    MetricsProcessor,
    first_partner_activity,
    first_partner_performance,
    first_week_growth,
)
from engagement_tracker.reporting.models import AIInsights
from engagement_tracker.timeseries.projection import (
    CONTRIBUTION_COUNT,
    TECH_PARTNER_ENGAGEMENT,
    TOTAL_ENGAGEMENT,
)
from engagement_tracker.timeseries.store import TimeSeriesStore

START = datetime.datetime(2024, 10, 7, tzinfo=datetime.timezone.utc)


@pytest.fixture()
def store() -> TimeSeriesStore:
    return TimeSeriesStore()


@pytest.mark.asyncio
async def test_process_data_returns_full_arrays(store, sample_records):
    processor = MetricsProcessor(store)

    combined = await processor.process_data(sample_records)

    assert combined.insights is None
    assert combined.cohort_id is None
    assert len(combined.report.tech_partner_activity) == 4
    assert len(combined.report.contributor_growth) == 2
    assert await store.list_cohorts() == []


@pytest.mark.asyncio
async def test_process_data_rejects_empty_input(store):
    with pytest.raises(EmptyInputError):
        await MetricsProcessor(store).process_data([])


@pytest.mark.asyncio
async def test_sampling_mode_keeps_one_entry(store, sample_records):
    processor = MetricsProcessor(store, sample_first_entries=True)

    report = (await processor.process_data(sample_records)).report

    assert len(report.tech_partner_activity) == 1
    assert len(report.tech_partner_performance) == 1
    assert len(report.contributor_growth) == 1
    assert report.tech_partner_performance[0].completion_rate == 1.0


@pytest.mark.asyncio
async def test_cohort_id_persists_three_series(store, sample_records):
    processor = MetricsProcessor(store)

    await processor.process_data(sample_records, cohort_id="2024-Q4", cohort_start=START)

    cohort = await store.get_cohort("2024-Q4")
    assert list(cohort.metrics) == [TOTAL_ENGAGEMENT, CONTRIBUTION_COUNT, TECH_PARTNER_ENGAGEMENT]
    assert [w.week_label for w in cohort.weeks] == ["Week 1", "Week 2"]

    contributions = await store.get_cohort_data("2024-Q4", CONTRIBUTION_COUNT)
    assert [(p.timestamp, p.value) for p in contributions] == [
        ("2024-10-07T00:00:00.000Z", 2),
        ("2024-10-14T00:00:00.000Z", 4),
    ]


@pytest.mark.asyncio
async def test_sampling_does_not_change_persisted_trends(sample_records):
    stored = {}
    for sampled in (False, True):
        store = TimeSeriesStore()
        processor = MetricsProcessor(store, sample_first_entries=sampled)
        await processor.process_data(sample_records, cohort_id="2024-Q4", cohort_start=START)

        partner_points = await store.get_cohort_data("2024-Q4", TECH_PARTNER_ENGAGEMENT)
        cohort = await store.get_cohort("2024-Q4")
        stored[sampled] = (
            [p.value for p in partner_points],
            [w.metrics["engagement"]["activeContributors"] for w in cohort.weeks],
        )

    assert stored[False] == ([1, 1], [2, 2])
    assert stored[True] == stored[False]


@pytest.mark.asyncio
async def test_whitespace_variants_of_a_week_are_counted_once(store, make_record):
    records = [
        make_record(name="A", week="Week 1", partner="Partner A", collaborated=True),
        make_record(name="B", week="Week 1 ", partner="Partner A", collaborated=True),
    ]
    await MetricsProcessor(store).process_data(records, cohort_id="2024-Q4", cohort_start=START)

    points = await store.get_cohort_data("2024-Q4", TECH_PARTNER_ENGAGEMENT)
    cohort = await store.get_cohort("2024-Q4")

    assert [p.value for p in points] == [2]
    assert [w.week_label for w in cohort.weeks] == ["Week 1"]


@pytest.mark.asyncio
async def test_analyze_trends_delegates_to_store(store, sample_records):
    processor = MetricsProcessor(store)
    await processor.process_data(sample_records, cohort_id="2024-Q4", cohort_start=START)

    analysis = await processor.analyze_trends(CONTRIBUTION_COUNT)

    assert [p.value for p in analysis.weekly_trends] == [2, 4]


@pytest.mark.asyncio
async def test_processors_are_independent(sample_records):
    first = MetricsProcessor(TimeSeriesStore())
    second = MetricsProcessor(TimeSeriesStore())

    await first.process_data(sample_records, cohort_id="2024-Q4", cohort_start=START)

    assert await second.time_series_store.list_cohorts() == []


@pytest.mark.asyncio
async def test_insights_attached_when_requested(store, sample_records):
    calls = []

    def generator(report):
        calls.append(report)
        return AIInsights(key_trends=["Contributions doubled"])

    processor = MetricsProcessor(store, insights_generator=generator)
    combined = await processor.process_data(sample_records, with_insights=True)

    assert len(calls) == 1
    assert combined.to_dict()["insights"]["keyTrends"] == ["Contributions doubled"]


@pytest.mark.asyncio
async def test_insight_failure_is_not_fatal(store, sample_records, caplog):
    def generator(_report):
        raise RuntimeError("quota exceeded")

    processor = MetricsProcessor(store, insights_generator=generator)
    combined = await processor.process_data(sample_records, with_insights=True)

    assert combined.insights is None
    assert "quota exceeded" in caplog.text


@pytest.mark.asyncio
async def test_insights_skipped_without_generator(store, sample_records):
    combined = await MetricsProcessor(store).process_data(sample_records, with_insights=True)
    assert "insights" not in combined.to_dict()


# ---------------------------------------------------------------------------
# Single-entry samples
# ---------------------------------------------------------------------------
def test_first_partner_activity(sample_records):
    activity = first_partner_activity(sample_records)

    assert activity.week == "Week 1"
    assert activity.partner == "Partner A"
    assert (activity.issues, activity.contributions, activity.collaborations) == (2, 1, 1)


def test_first_partner_performance_without_collaborators(make_record):
    perf = first_partner_performance([make_record()])
    assert (perf.partner, perf.issues, perf.completion_rate) == ("Unknown", 0, 0)


def test_first_week_growth(sample_records):
    growth = first_week_growth(sample_records)

    assert growth.week == "Week 1"
    assert growth.total_contributions == 2
    assert growth.active_contributors == 1
    assert growth.contributions_per_dev == 2
    assert growth.new_contributors == 2
