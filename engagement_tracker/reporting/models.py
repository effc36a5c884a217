"""Data structures for the metrics reporting pipeline.

Attribute names are snake_case; ``to_dict`` emits the camelCase JSON shape
consumed by the dashboard charts.  That shape is a compatibility contract:
keys may be added but never renamed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class EngagementTrend:
    week: str
    high: int
    medium: int
    low: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "High Engagement": self.high,
            "Medium Engagement": self.medium,
            "Low Engagement": self.low,
            "total": self.total,
        }


@dataclass(slots=True)
class TechnicalProgress:
    week: str
    total_issues: int

    def to_dict(self) -> Dict[str, Any]:
        return {"week": self.week, "Total Issues": self.total_issues}


@dataclass(slots=True)
class ContributorGrowth:
    week: str
    total_contributions: int
    active_contributors: int
    contributions_per_dev: float
    new_contributors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "totalContributions": self.total_contributions,
            "activeContributors": self.active_contributors,
            "contributionsPerDev": self.contributions_per_dev,
            "newContributors": self.new_contributors,
        }


@dataclass(slots=True)
class TechPartnerMetrics:
    partner: str
    total_issues: int
    active_contributors: int
    avg_issues_per_contributor: float
    collaboration_rate: float
    collaboration_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "partner": self.partner,
            "totalIssues": self.total_issues,
            "activeContributors": self.active_contributors,
            "avgIssuesPerContributor": self.avg_issues_per_contributor,
            "collaborationRate": self.collaboration_rate,
            "collaborationScore": self.collaboration_score,
        }


@dataclass(slots=True)
class TechPartnerActivity:
    week: str
    partner: str
    issues: int
    contributions: int
    collaborations: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "partner": self.partner,
            "issues": self.issues,
            "contributions": self.contributions,
            "collaborations": self.collaborations,
        }


@dataclass(slots=True)
class TechPartnerPerformance:
    partner: str
    issues: int
    active_contributors: int
    completion_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "partner": self.partner,
            "issues": self.issues,
            "activeContributors": self.active_contributors,
            "completionRate": self.completion_rate,
        }


@dataclass(slots=True)
class FeedbackSentiment:
    positive: int = 0
    neutral: int = 0
    negative: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"positive": self.positive, "neutral": self.neutral, "negative": self.negative}


@dataclass(slots=True)
class ActionItem:
    type: str  # "warning" | "opportunity" | "success"
    title: str
    description: str
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "action": self.action,
        }


@dataclass(slots=True)
class TopPerformer:
    name: str
    total_issues: int
    avg_engagement: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "totalIssues": self.total_issues,
            "avgEngagement": self.avg_engagement,
        }


@dataclass(slots=True)
class IssueProgress:
    """Project-board status group derived from the activity snapshot."""

    category: str
    count: int
    percent_complete: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "count": self.count,
            "percentComplete": self.percent_complete,
        }


@dataclass(slots=True)
class ProgramHealth:
    nps_score: int = 0
    engagement_rate: int = 0
    satisfaction_score: int = 0
    active_tech_partners: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "npsScore": self.nps_score,
            "engagementRate": self.engagement_rate,
            "satisfactionScore": self.satisfaction_score,
            "activeTechPartners": self.active_tech_partners,
        }


@dataclass(slots=True)
class WeeklyMetrics:
    """Per-week summary used for cohort ``weeks`` entries."""

    week: str
    week_number: int
    session_attendance: Dict[str, int] = field(default_factory=dict)
    participation_levels: Dict[str, int] = field(
        default_factory=lambda: {"high": 0, "medium": 0, "low": 0}
    )
    issue_total: int = 0
    issue_details: List[Dict[str, str]] = field(default_factory=list)
    contributions_by_partner: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "weekNumber": self.week_number,
            "sessionAttendance": dict(self.session_attendance),
            "participationLevels": dict(self.participation_levels),
            "issues": {"total": self.issue_total, "details": list(self.issue_details)},
            "cumulative": {
                "totalContributions": self.issue_total,
                "byTechPartner": dict(self.contributions_by_partner),
            },
        }


@dataclass(slots=True)
class MetricsReport:
    """Aggregate output of the pipeline, rebuilt from scratch on every call."""

    weekly_change: int
    participation_rate: int
    active_contributors: int
    total_contributions: int
    program_health: ProgramHealth
    engagement_trends: List[EngagementTrend] = field(default_factory=list)
    technical_progress: List[TechnicalProgress] = field(default_factory=list)
    tech_partner_metrics: List[TechPartnerMetrics] = field(default_factory=list)
    tech_partner_activity: List[TechPartnerActivity] = field(default_factory=list)
    tech_partner_performance: List[TechPartnerPerformance] = field(default_factory=list)
    contributor_growth: List[ContributorGrowth] = field(default_factory=list)
    feedback_sentiment: FeedbackSentiment = field(default_factory=FeedbackSentiment)
    action_items: List[ActionItem] = field(default_factory=list)
    top_performers: List[TopPerformer] = field(default_factory=list)
    issue_progress: List[IssueProgress] = field(default_factory=list)

    # Flattened program-health values, kept for chart components that read them directly
    @property
    def nps_score(self) -> int:
        return self.program_health.nps_score

    @property
    def engagement_rate(self) -> int:
        return self.program_health.engagement_rate

    @property
    def satisfaction_score(self) -> int:
        return self.program_health.satisfaction_score

    @property
    def active_tech_partners(self) -> int:
        return self.program_health.active_tech_partners

    def to_dict(self) -> Dict[str, Any]:
        """Return the dashboard JSON shape."""
        return {
            "weeklyChange": self.weekly_change,
            "participationRate": self.participation_rate,
            "activeContributors": self.active_contributors,
            "totalContributions": self.total_contributions,
            "programHealth": self.program_health.to_dict(),
            "npsScore": self.nps_score,
            "engagementRate": self.engagement_rate,
            "satisfactionScore": self.satisfaction_score,
            "activeTechPartners": self.active_tech_partners,
            "engagementTrends": [t.to_dict() for t in self.engagement_trends],
            "technicalProgress": [t.to_dict() for t in self.technical_progress],
            "techPartnerMetrics": [m.to_dict() for m in self.tech_partner_metrics],
            "techPartnerActivity": [a.to_dict() for a in self.tech_partner_activity],
            "techPartnerPerformance": [p.to_dict() for p in self.tech_partner_performance],
            "contributorGrowth": [g.to_dict() for g in self.contributor_growth],
            "feedbackSentiment": self.feedback_sentiment.to_dict(),
            "actionItems": [a.to_dict() for a in self.action_items],
            "topPerformers": [p.to_dict() for p in self.top_performers],
            "issueProgress": [i.to_dict() for i in self.issue_progress],
        }


@dataclass(slots=True)
class AIMetrics:
    engagement_score: float = 0.0
    technical_progress: float = 0.0
    collaboration_index: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engagementScore": self.engagement_score,
            "technicalProgress": self.technical_progress,
            "collaborationIndex": self.collaboration_index,
        }


@dataclass(slots=True)
class AIInsights:
    key_trends: List[str] = field(default_factory=list)
    areas_of_concern: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)
    metrics: AIMetrics = field(default_factory=AIMetrics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyTrends": list(self.key_trends),
            "areasOfConcern": list(self.areas_of_concern),
            "recommendations": list(self.recommendations),
            "achievements": list(self.achievements),
            "metrics": self.metrics.to_dict(),
        }


@dataclass(slots=True)
class CombinedReport:
    """Orchestrator output: pipeline report plus optional insights."""

    report: MetricsReport
    insights: Optional[AIInsights] = None
    cohort_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.report.to_dict()
        if self.insights is not None:
            data["insights"] = self.insights.to_dict()
        return data
