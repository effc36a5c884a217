"""Week-label helpers shared by the pipeline and the trend projection."""

from __future__ import annotations

import math
import re
from typing import Dict, Iterable, List

from engagement_tracker.records import ParticipationRecord

_WEEK_NUMBER_RE = re.compile(r"\d+")

UNKNOWN_WEEK = "Unknown Week"


def parse_week_number(label: str) -> int:
    """Return the first integer in *label* (``"Week 3 (Oct 7 - 11)"`` → 3), else 0."""
    match = _WEEK_NUMBER_RE.search(label or "")
    return int(match.group(0)) if match else 0


def format_week(label: str) -> str:
    return (label or "").strip() or UNKNOWN_WEEK


def round_half_up(value: float) -> int:
    """Round like JavaScript ``Math.round`` (halves go towards +inf)."""
    return int(math.floor(value + 0.5))


def group_by_week(
    records: Iterable[ParticipationRecord],
) -> Dict[str, List[ParticipationRecord]]:
    """Group records by display week label, preserving first-seen order.

    Labels that only differ in surrounding whitespace share one group, so
    every per-week row can be looked up by its ``week`` field.
    """
    groups: Dict[str, List[ParticipationRecord]] = {}
    for record in records:
        groups.setdefault(format_week(record.program_week), []).append(record)
    return groups


def sorted_week_keys(groups: Dict[str, List[ParticipationRecord]], *, newest_first: bool = False) -> List[str]:
    """Week labels ordered by ordinal; ties keep first-seen order."""
    return sorted(groups, key=parse_week_number, reverse=newest_first)
