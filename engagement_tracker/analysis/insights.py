"""Program insights generated with OpenAI from a computed metrics report.

The model receives the report's JSON and must answer with a single JSON
object matching :class:`AIInsights`.  Only aggregated numbers are sent;
individual survey answers never leave the process.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List

from engagement_tracker.openai_client import chat_completion
from engagement_tracker.reporting.models import AIInsights, AIMetrics, MetricsReport

_logger = logging.getLogger(__name__)

_RESPONSE_RE = re.compile(r"\{[\s\S]*\}")  # outermost JSON object in string

_LIST_KEYS = {
    "keyTrends": "key_trends",
    "areasOfConcern": "areas_of_concern",
    "recommendations": "recommendations",
    "achievements": "achievements",
}

_SYSTEM_PROMPT = (
    "You are an analyst for a developer program. You receive weekly engagement "
    "and contribution metrics as JSON. Respond ONLY with a minified JSON object "
    'with the keys "keyTrends", "areasOfConcern", "recommendations", '
    '"achievements" (each an array of at most 4 short sentences) and "metrics" '
    '(an object with numeric "engagementScore", "technicalProgress" and '
    '"collaborationIndex" between 0 and 100).'
)


def _clamp(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Metric value is not numeric: {value!r}")
    return max(0.0, min(100.0, float(value)))


def _parse_response(content: str) -> AIInsights:
    """Extract :class:`AIInsights` from the model's raw string response."""

    match = _RESPONSE_RE.search(content)
    if not match:
        raise ValueError("Model response did not contain a JSON object")
    try:
        payload: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ValueError("Failed to parse JSON from model response") from exc

    lists: Dict[str, List[str]] = {}
    for key, attr in _LIST_KEYS.items():
        items = payload.get(key, [])
        if not isinstance(items, list) or not all(isinstance(x, str) for x in items):
            raise ValueError(f"'{key}' must be an array of strings")
        lists[attr] = items

    metrics_raw = payload.get("metrics") or {}
    metrics = AIMetrics(
        engagement_score=_clamp(metrics_raw.get("engagementScore", 0)),
        technical_progress=_clamp(metrics_raw.get("technicalProgress", 0)),
        collaboration_index=_clamp(metrics_raw.get("collaborationIndex", 0)),
    )
    return AIInsights(metrics=metrics, **lists)


def _report_payload(report: MetricsReport) -> str:
    data = report.to_dict()
    # names are not needed for program-level insights
    data["topPerformers"] = [
        {k: v for k, v in p.items() if k != "name"} for p in data["topPerformers"]
    ]
    return json.dumps(data)


def generate_insights(
    report: MetricsReport,
    *,
    temperature: float = 0.2,
    max_tokens: int = 600,
) -> AIInsights:
    """Ask the model for trends, concerns, recommendations and achievements.

    Raises RuntimeError after two failed attempts.
    """

    messages = [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": "Program metrics:\n" + _report_payload(report)},
    ]

    attempts = 0
    while True:
        attempts += 1
        try:
            content = chat_completion(messages, temperature=temperature, max_tokens=max_tokens)
            return _parse_response(content)
        except Exception as exc:  # noqa: BLE001
            _logger.warning("Insight generation attempt %d failed: %s", attempts, exc)
            if attempts >= 2:
                raise RuntimeError("OpenAI insight generation failed") from exc
