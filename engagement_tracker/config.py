"""Configuration constants for the metrics pipeline and time-series store."""
from __future__ import annotations

import os

# Number of most recent records used for rate, sentiment and action-item checks
RECENT_WINDOW: int = int(os.getenv("REPORT_RECENT_WINDOW", "30"))

# Maximum number of contributors listed as top performers
TOP_PERFORMERS_LIMIT: int = int(os.getenv("REPORT_TOP_PERFORMERS", "5"))

# Share (0–1) of low-engagement records in the window above which we warn
LOW_ENGAGEMENT_THRESHOLD: float = float(
    os.getenv("REPORT_LOW_ENGAGEMENT_THRESHOLD", "0.2")
)

# Maximum weeks / action items shown in the Markdown digest
MAX_DIGEST_WEEKS: int = int(os.getenv("REPORT_MAX_WEEKS", "12"))
MAX_ACTION_ITEMS: int = int(os.getenv("REPORT_MAX_ACTION_ITEMS", "10"))

# Key under which the whole time-series document is persisted
STORAGE_KEY: str = os.getenv("METRICS_STORAGE_KEY", "pldg_metrics_v1")

# Metric type used when a batch update does not name one
DEFAULT_METRIC_TYPE: str = "total-engagement"

# Placeholder only; the store never waits on a lock with a timeout
LOCK_TIMEOUT_SECONDS: float = float(os.getenv("METRICS_LOCK_TIMEOUT", "5"))
