"""Shared factories for survey rows and records."""
from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from engagement_tracker import records as rec
from engagement_tracker.records import ParticipationRecord


def build_row(
    name: str = "Alice",
    week: str = "Week 1",
    engagement: str = "3 - Highly engaged",
    contributions: Any = "0",
    recommend: Optional[Any] = None,
    satisfaction: Optional[Any] = None,
    partner: Optional[Any] = None,
    collaborated: bool = False,
    blockers: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Return an Airtable-style row keyed by survey question."""

    row: Dict[str, Any] = {
        rec.FIELD_NAME: name,
        rec.FIELD_WEEK: week,
        rec.FIELD_ENGAGEMENT: engagement,
        rec.FIELD_CONTRIBUTIONS: contributions,
        rec.FIELD_COLLABORATED: "Yes" if collaborated else "No",
    }
    if recommend is not None:
        row[rec.FIELD_RECOMMEND] = recommend
    if satisfaction is not None:
        row[rec.FIELD_SATISFACTION] = satisfaction
    if partner is not None:
        row[rec.FIELD_PARTNER] = partner
    if blockers is not None:
        row[rec.FIELD_BLOCKERS] = blockers
    row.update(extra)
    return row


def build_record(**kwargs: Any) -> ParticipationRecord:
    return ParticipationRecord.from_fields(build_row(**kwargs))


@pytest.fixture()
def make_row():
    return build_row


@pytest.fixture()
def make_record():
    return build_record


@pytest.fixture()
def sample_records(make_record):
    """Two weeks, three people, one tech partner."""
    return [
        make_record(name="Alice", week="Week 1", contributions="2", recommend="9",
                    satisfaction="9", partner="Partner A", collaborated=True),
        make_record(name="Bob", week="Week 1", engagement="1 - Passively listened",
                    contributions="0", recommend="5", satisfaction="5"),
        make_record(name="Alice", week="Week 2", contributions="3", recommend="10",
                    satisfaction="8", partner="Partner A", collaborated=True),
        make_record(name="Cara", week="Week 2", engagement="2 - Actively listened",
                    contributions="1", recommend="7", satisfaction="7",
                    blockers="Waiting on review"),
    ]
