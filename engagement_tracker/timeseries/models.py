"""Persisted time-series structures: points, metric series and cohorts."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def to_iso(moment: datetime.datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    moment = moment.astimezone(datetime.timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class TrendPoint:
    """One timestamped value of a metric series."""

    timestamp: str
    value: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrendPoint":
        """Accept ``timestamp`` (ISO string or epoch millis) or a legacy ``date`` key."""

        raw = data.get("timestamp")
        if raw is None:
            raw = data.get("date")
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            timestamp = to_iso(
                datetime.datetime.fromtimestamp(raw / 1000, tz=datetime.timezone.utc)
            )
        elif raw:
            timestamp = str(raw)
        else:
            timestamp = to_iso(utc_now())
        return cls(timestamp=timestamp, value=data.get("value", 0))

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "value": self.value}


@dataclass
class MetricSeries:
    """A full snapshot of one metric within one cohort."""

    metric_type: str
    points: List[TrendPoint] = field(default_factory=list)
    last_updated: str = ""
    version: int = 1

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], metric_type: str = "") -> "MetricSeries":
        return cls(
            # older documents stored the name under ``metricPath``
            metric_type=data.get("metricType") or data.get("metricPath") or metric_type,
            points=[TrendPoint.from_dict(p) for p in data.get("points") or []],
            last_updated=data.get("lastUpdated", ""),
            version=int(data.get("version", 1)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "metricType": self.metric_type,
            "points": [p.to_dict() for p in self.points],
            "lastUpdated": self.last_updated,
        }


@dataclass
class WeekData:
    """Summary of one program week stored alongside a cohort's series."""

    week_number: int
    week_label: str
    metrics: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WeekData":
        return cls(
            week_number=int(data.get("weekNumber", 0)),
            week_label=data.get("weekLabel", ""),
            metrics=dict(data.get("metrics") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekNumber": self.week_number,
            "weekLabel": self.week_label,
            "metrics": self.metrics,
        }


@dataclass
class Cohort:
    """A named time window (e.g. ``"2024-Q1"``) owning metric series."""

    id: str
    start_date: str = ""
    end_date: str = ""
    weeks: List[WeekData] = field(default_factory=list)
    # insertion-ordered: "first series" lookups depend on it
    metrics: Dict[str, MetricSeries] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, cohort_id: str, data: Mapping[str, Any]) -> "Cohort":
        return cls(
            id=data.get("id", cohort_id),
            start_date=data.get("startDate", ""),
            end_date=data.get("endDate", ""),
            weeks=[WeekData.from_dict(w) for w in data.get("weeks") or []],
            metrics={
                name: MetricSeries.from_dict(series, name)
                for name, series in (data.get("metrics") or {}).items()
            },
        )

    def first_series(self) -> Optional[MetricSeries]:
        return next(iter(self.metrics.values()), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "weeks": [w.to_dict() for w in self.weeks],
            "metrics": {name: s.to_dict() for name, s in self.metrics.items()},
        }


@dataclass(frozen=True)
class TrendAnalysis:
    weekly_trends: List[TrendPoint]

    def to_dict(self) -> Dict[str, Any]:
        return {"weeklyTrends": [p.to_dict() for p in self.weekly_trends]}
