import copy
import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from engagement_tracker import config
from engagement_tracker.timeseries.backends import KeyValueBackend, MemoryBackend
from engagement_tracker.timeseries.models import (
    Cohort,
    MetricSeries,
    TrendAnalysis,
    TrendPoint,
    WeekData,
    to_iso,
    utc_now,
)

PointLike = Union[TrendPoint, Mapping[str, Any]]


class TimeSeriesStore:
    """Cohort-keyed metric series persisted as a single JSON document.

    The whole document is loaded once at construction and written back in full
    after every mutation.  Persistence problems never reach the caller: a
    missing or corrupt document yields an empty store, a failed write is logged
    and the in-memory copy stays authoritative.

    Public operations are coroutines so callers can treat the store like any
    other I/O-bound collaborator; the work itself is synchronous.
    """

    def __init__(
        self,
        backend: Optional[KeyValueBackend] = None,
        *,
        storage_key: str = config.STORAGE_KEY,
        clock: Callable[[], Any] = utc_now,
    ):
        """Create a new :class:`TimeSeriesStore`.

        Args:
            backend: Key-value backend holding the document.  Defaults to a
                fresh :class:`MemoryBackend`.
            storage_key: Key under which the document is stored.
            clock: Callable returning the current ``datetime``; injectable for
                tests.
        """
        self._backend: KeyValueBackend = backend if backend is not None else MemoryBackend()
        self._storage_key = storage_key
        self._clock = clock
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)
        self._cohorts: Dict[str, Cohort] = {}
        self._last_updated: str = self._now()
        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _now(self) -> str:
        return to_iso(self._clock())

    def _load(self) -> None:
        try:
            raw = self._backend.get(self._storage_key)
        except Exception as exc:  # noqa: BLE001 – fall back to empty state
            self._logger.warning("Error reading time series data: %s", exc)
            return
        if raw is None:
            self._logger.debug("No time series data stored under %s", self._storage_key)
            return

        try:
            document = json.loads(raw)
            cohorts_raw = document["cohorts"]
            if not isinstance(cohorts_raw, dict):
                raise TypeError("'cohorts' must be an object")
            cohorts = {
                cohort_id: Cohort.from_dict(cohort_id, data)
                for cohort_id, data in cohorts_raw.items()
            }
        except Exception as exc:  # noqa: BLE001 – corrupt document, start over
            self._logger.warning(
                "Error loading time series data from %s, starting empty: %s",
                self._storage_key,
                exc,
            )
            return

        self._cohorts = cohorts
        self._last_updated = document.get("lastUpdated") or self._last_updated
        self._logger.info(
            "time_series_loaded",
            extra={"storage_key": self._storage_key, "cohorts": len(cohorts)},
        )

    def _document(self) -> Dict[str, Any]:
        return {
            "cohorts": {cid: cohort.to_dict() for cid, cohort in self._cohorts.items()},
            "lastUpdated": self._last_updated,
        }

    def _save(self) -> None:
        """Write the full document; must be called with the lock held."""
        try:
            self._backend.set(self._storage_key, json.dumps(self._document()))
        except Exception:  # noqa: BLE001 – memory stays authoritative
            self._logger.exception("Error saving time series data to %s", self._storage_key)

    def _cohort_for_write(self, cohort_id: str) -> Cohort:
        cohort = self._cohorts.get(cohort_id)
        if cohort is None:
            now = self._now()
            cohort = Cohort(id=cohort_id, start_date=now, end_date=now)
            self._cohorts[cohort_id] = cohort
            self._logger.info("cohort_created", extra={"cohort_id": cohort_id})
        return cohort

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def batch_update_metrics(
        self,
        cohort_id: str,
        points: Iterable[PointLike],
        metric_type: str = config.DEFAULT_METRIC_TYPE,
    ) -> None:
        """Replace the *metric_type* series of *cohort_id* with *points*.

        The cohort is created on first write.  The series is a full snapshot:
        previous points are discarded and ``version`` is reset to 1.  Points
        are stored in the order given.
        """
        normalized = [p if isinstance(p, TrendPoint) else TrendPoint.from_dict(p) for p in points]
        with self._lock:
            now = self._now()
            cohort = self._cohort_for_write(cohort_id)
            cohort.metrics[metric_type] = MetricSeries(
                metric_type=metric_type,
                points=normalized,
                last_updated=now,
                version=1,
            )
            self._last_updated = now
            self._save()
        self._logger.info(
            "metrics_updated",
            extra={"cohort_id": cohort_id, "metric_type": metric_type, "points": len(normalized)},
        )

    async def update_cohort_weeks(self, cohort_id: str, weeks: Iterable[WeekData]) -> None:
        """Replace the weekly summaries stored on *cohort_id*."""
        with self._lock:
            cohort = self._cohort_for_write(cohort_id)
            cohort.weeks = list(weeks)
            self._last_updated = self._now()
            self._save()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_cohort_data(
        self, cohort_id: str, metric_type: Optional[str] = None
    ) -> List[TrendPoint]:
        """Return the points of one series of *cohort_id*.

        Without *metric_type* the first series written to the cohort is used.
        Unknown cohorts or metric types yield an empty list.
        """
        with self._lock:
            cohort = self._cohorts.get(cohort_id)
            if cohort is None:
                return []
            series = cohort.first_series() if metric_type is None else cohort.metrics.get(metric_type)
            return list(series.points) if series is not None else []

    async def get_metric_series(self, cohort_id: str, metric_type: str) -> Optional[MetricSeries]:
        with self._lock:
            cohort = self._cohorts.get(cohort_id)
            if cohort is None or metric_type not in cohort.metrics:
                return None
            return copy.deepcopy(cohort.metrics[metric_type])

    async def analyze_trends(self, metric_type: str) -> TrendAnalysis:
        """Return the *metric_type* points of the most recently created cohort."""
        with self._lock:
            if not self._cohorts:
                return TrendAnalysis(weekly_trends=[])
            latest = list(self._cohorts.values())[-1]
            series = latest.metrics.get(metric_type)
            return TrendAnalysis(weekly_trends=list(series.points) if series else [])

    async def get_cohort(self, cohort_id: str) -> Optional[Cohort]:
        with self._lock:
            cohort = self._cohorts.get(cohort_id)
            return copy.deepcopy(cohort) if cohort is not None else None

    async def list_cohorts(self) -> List[str]:
        with self._lock:
            return list(self._cohorts)

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the persisted document shape."""
        with self._lock:
            return copy.deepcopy(self._document())

    @property
    def last_updated(self) -> str:
        return self._last_updated
