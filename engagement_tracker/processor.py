"""Metrics orchestrator: pipeline report plus store-backed trend series."""
from __future__ import annotations

import datetime
import logging
from typing import Callable, List, Optional, Sequence

from engagement_tracker.records import ActivitySnapshot, ParticipationRecord
from engagement_tracker.reporting.aggregator import compute_report, compute_weekly_metrics
from engagement_tracker.reporting.models import (
    AIInsights,
    CombinedReport,
    ContributorGrowth,
    MetricsReport,
    TechPartnerActivity,
    TechPartnerPerformance,
)
from engagement_tracker.reporting.weeks import group_by_week
from engagement_tracker.timeseries.models import TrendAnalysis
from engagement_tracker.timeseries.projection import build_week_summaries, project_trends
from engagement_tracker.timeseries.store import TimeSeriesStore

logger = logging.getLogger(__name__)

InsightsGenerator = Callable[[MetricsReport], AIInsights]


# ---------------------------------------------------------------------------
# Single-entry samples (legacy dashboard shape)
# ---------------------------------------------------------------------------
def first_partner_activity(records: Sequence[ParticipationRecord]) -> TechPartnerActivity:
    """Activity of the first partner in the first week, in first-seen order."""

    week, entries = next(iter(group_by_week(records).items()))
    partner = entries[0].partner_label
    partner_entries = [e for e in entries if e.partner_label == partner]
    return TechPartnerActivity(
        week=week,
        partner=partner,
        issues=sum(e.contribution_count for e in partner_entries),
        contributions=len(partner_entries),
        collaborations=sum(1 for e in partner_entries if e.collaborated),
    )


def first_partner_performance(records: Sequence[ParticipationRecord]) -> TechPartnerPerformance:
    collaborating = [r for r in records if r.collaborated]
    if not collaborating:
        return TechPartnerPerformance(
            partner="Unknown", issues=0, active_contributors=0, completion_rate=0
        )
    partner = collaborating[0].partner_label
    entries = [r for r in collaborating if r.partner_label == partner]
    return TechPartnerPerformance(
        partner=partner,
        issues=sum(e.contribution_count for e in entries),
        active_contributors=len({e.name for e in entries}),
        # every entry collaborated, so this is always 1.0 in the legacy shape
        completion_rate=sum(1 for e in entries if e.collaborated) / len(entries),
    )


def first_week_growth(records: Sequence[ParticipationRecord]) -> ContributorGrowth:
    week, entries = next(iter(group_by_week(records).items()))
    total = sum(e.contribution_count for e in entries)
    active = sum(1 for e in entries if e.contribution_count > 0)
    return ContributorGrowth(
        week=week,
        total_contributions=total,
        active_contributors=active,
        contributions_per_dev=total / active if active > 0 else 0,
        new_contributors=len(entries),
    )


class MetricsProcessor:
    """Compose the aggregation pipeline with a :class:`TimeSeriesStore`.

    Construct one per application (see :func:`engagement_tracker.app.build_processor`);
    tests build their own instances around an in-memory store.
    """

    def __init__(
        self,
        store: TimeSeriesStore,
        *,
        sample_first_entries: bool = False,
        insights_generator: Optional[InsightsGenerator] = None,
    ) -> None:
        """Create a processor.

        Args:
            store: Time-series store used for trend persistence and lookups.
            sample_first_entries: Replace partner activity, partner performance
                and contributor growth with a single representative entry each,
                matching the legacy dashboard payload.
            insights_generator: Callable producing :class:`AIInsights` from a
                report; required for ``with_insights=True``.
        """
        self.time_series_store = store
        self._sample_first_entries = sample_first_entries
        self._insights_generator = insights_generator

    async def process_data(
        self,
        records: Sequence[ParticipationRecord],
        activity: Optional[ActivitySnapshot] = None,
        *,
        cohort_id: Optional[str] = None,
        cohort_start: Optional[datetime.datetime] = None,
        with_insights: bool = False,
    ) -> CombinedReport:
        """Compute the report for *records* and optionally persist its trends.

        Raises
        ------
        EmptyInputError
            If *records* is empty.
        """

        report = compute_report(records, activity)

        # trends are always persisted from the full per-week arrays
        if cohort_id is not None:
            await self.record_trends(cohort_id, records, report, cohort_start)

        if self._sample_first_entries:
            report.tech_partner_activity = [first_partner_activity(records)]
            report.tech_partner_performance = [first_partner_performance(records)]
            report.contributor_growth = [first_week_growth(records)]

        insights = self._insights(report) if with_insights else None

        return CombinedReport(report=report, insights=insights, cohort_id=cohort_id)

    async def record_trends(
        self,
        cohort_id: str,
        records: Sequence[ParticipationRecord],
        report: MetricsReport,
        cohort_start: Optional[datetime.datetime] = None,
    ) -> List[str]:
        """Persist the report's weekly series and summaries under *cohort_id*.

        Returns the metric types written.
        """

        if cohort_start is None:
            cohort_start = datetime.datetime.now(datetime.timezone.utc)
        series = project_trends(report, cohort_start)
        for metric_type, points in series.items():
            await self.time_series_store.batch_update_metrics(cohort_id, points, metric_type)

        weeks = build_week_summaries(compute_weekly_metrics(records), report)
        await self.time_series_store.update_cohort_weeks(cohort_id, weeks)
        logger.info(
            "Recorded %d series and %d weeks for cohort %s", len(series), len(weeks), cohort_id
        )
        return list(series)

    def _insights(self, report: MetricsReport) -> Optional[AIInsights]:
        if self._insights_generator is None:
            logger.warning("Insights requested but no generator is configured")
            return None
        try:
            return self._insights_generator(report)
        except Exception as exc:  # noqa: BLE001 – insights are optional
            logger.warning("Insight generation failed: %s", exc)
            return None

    async def analyze_trends(self, metric_type: str) -> TrendAnalysis:
        return await self.time_series_store.analyze_trends(metric_type)
