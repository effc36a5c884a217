"""Input data contracts: survey participation records and activity snapshots.

Records arrive from the fetch layer as Airtable rows whose field names are the
survey questions themselves.  :meth:`ParticipationRecord.from_fields` turns
one such row into an immutable, typed record so the pipeline never has to
deal with stringly-typed numbers.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

__all__ = [
    "FIELD_NAME",
    "FIELD_WEEK",
    "LinkedIssue",
    "ParticipationRecord",
    "ActivityIssue",
    "StatusGroups",
    "ActivitySnapshot",
    "parse_int",
    "parse_records",
]

# Airtable field names (survey questions)
FIELD_NAME = "Name"
FIELD_WEEK = "Program Week"
FIELD_ENGAGEMENT = "Engagement Participation "  # trailing space is part of the column name
FIELD_COLLABORATED = "Tech Partner Collaboration?"
FIELD_PARTNER = "Which Tech Partner"
FIELD_RECOMMEND = "How likely are you to recommend the PLDG to others?"
FIELD_SATISFACTION = "How satisfied are you with your progress?"
FIELD_CONTRIBUTIONS = "How many issues, PRs, or projects this week?"
FIELD_ISSUE_TITLE = "Issue Title 1"
FIELD_ISSUE_LINK = "Issue Link 1"
FIELD_ISSUE_DESCRIPTION = "Issue Description 1"
FIELD_BLOCKERS = "What is blocking your progress?"
FIELD_COLLAB_SATISFACTION = "How satisfied are you with the collaboration?"
FIELD_ENGAGEMENT_LEVEL = "Engagement Level"
FIELD_SESSIONS = "Engagement Tracking"

_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """Parse the leading integer of *value* the way ``parseInt`` does.

    ``"3 issues"`` → 3, ``"  7"`` → 7, ``"n/a"`` → *default*.  Booleans are
    rejected; floats are truncated.
    """

    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    match = _INT_RE.match(str(value))
    return int(match.group(1)) if match else default


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _names(value: Any) -> Tuple[str, ...]:
    """Normalize a single-select or multi-select partner field."""
    if not value:
        return ()
    items = value if isinstance(value, (list, tuple)) else [value]
    return tuple(str(v).strip() for v in items if str(v).strip())


@dataclass(frozen=True)
class LinkedIssue:
    """An issue a participant linked in their weekly report."""

    title: str
    link: str
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "link": self.link, "description": self.description}


@dataclass(frozen=True)
class ParticipationRecord:
    """One respondent's survey answers for one program week."""

    name: str
    program_week: str
    engagement_participation: str = ""
    recommend_score: Optional[int] = None
    satisfaction_score: int = 0
    contribution_count: int = 0
    tech_partners: Tuple[str, ...] = ()
    collaborated: bool = False
    issue: Optional[LinkedIssue] = None
    blocking_progress: str = ""
    collaboration_satisfaction: int = 0
    engagement_level: int = 0
    sessions_attended: Tuple[str, ...] = ()

    @classmethod
    def from_fields(cls, row: Mapping[str, Any]) -> "ParticipationRecord":
        """Build a record from an Airtable row (flat or ``{"fields": ...}``)."""

        fields: Mapping[str, Any] = row["fields"] if isinstance(row.get("fields"), Mapping) else row

        title = _text(fields.get(FIELD_ISSUE_TITLE)).strip()
        link = _text(fields.get(FIELD_ISSUE_LINK)).strip()
        issue = (
            LinkedIssue(title, link, _text(fields.get(FIELD_ISSUE_DESCRIPTION)))
            if title and link
            else None
        )

        sessions_raw = fields.get(FIELD_SESSIONS)
        if isinstance(sessions_raw, (list, tuple)):
            sessions = _names(sessions_raw)
        else:
            sessions = _names(_text(sessions_raw).split(","))

        return cls(
            name=_text(fields.get(FIELD_NAME)),
            program_week=_text(fields.get(FIELD_WEEK)),
            engagement_participation=_text(fields.get(FIELD_ENGAGEMENT)),
            recommend_score=parse_int(fields.get(FIELD_RECOMMEND), default=None),
            satisfaction_score=parse_int(fields.get(FIELD_SATISFACTION)) or 0,
            contribution_count=max(0, parse_int(fields.get(FIELD_CONTRIBUTIONS)) or 0),
            tech_partners=_names(fields.get(FIELD_PARTNER)),
            collaborated=fields.get(FIELD_COLLABORATED) == "Yes",
            issue=issue,
            blocking_progress=_text(fields.get(FIELD_BLOCKERS)),
            collaboration_satisfaction=parse_int(fields.get(FIELD_COLLAB_SATISFACTION)) or 0,
            engagement_level=parse_int(fields.get(FIELD_ENGAGEMENT_LEVEL)) or 0,
            sessions_attended=sessions,
        )

    # ------------------------------------------------------------------
    # Engagement helpers
    # ------------------------------------------------------------------
    def _level_is(self, *prefixes: str) -> bool:
        label = self.engagement_participation.strip()
        return any(label.startswith(p) for p in prefixes)

    @property
    def is_engaged(self) -> bool:
        """Medium ("2 -") or high ("3 -") engagement."""
        return self._level_is("2 -", "3 -")

    @property
    def is_high_engagement(self) -> bool:
        return self._level_is("3 -")

    @property
    def is_medium_engagement(self) -> bool:
        return self._level_is("2 -")

    @property
    def is_low_engagement(self) -> bool:
        return self._level_is("1 -")

    @property
    def partner_label(self) -> str:
        """Affiliation label used as a grouping key (``"Unknown"`` when none)."""
        return ", ".join(self.tech_partners) or "Unknown"


def parse_records(rows: Iterable[Mapping[str, Any]]) -> List[ParticipationRecord]:
    """Convert raw rows into :class:`ParticipationRecord` instances."""
    return [ParticipationRecord.from_fields(row) for row in rows]


# ---------------------------------------------------------------------------
# Activity snapshot (GitHub project board)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ActivityIssue:
    id: str
    title: str
    state: str
    created_at: str
    closed_at: Optional[str] = None
    status: str = ""
    assignee: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ActivityIssue":
        assignee = data.get("assignee")
        return cls(
            id=_text(data.get("id")),
            title=_text(data.get("title")),
            state=_text(data.get("state")),
            created_at=_text(data.get("created_at")),
            closed_at=data.get("closed_at") or None,
            status=_text(data.get("status")),
            assignee=assignee.get("login") if isinstance(assignee, Mapping) else None,
        )


@dataclass(frozen=True)
class StatusGroups:
    todo: int = 0
    in_progress: int = 0
    done: int = 0

    @property
    def total(self) -> int:
        return self.todo + self.in_progress + self.done


@dataclass(frozen=True)
class ActivitySnapshot:
    """External project-board state supplied alongside the survey records."""

    issues: Tuple[ActivityIssue, ...] = ()
    status_groups: StatusGroups = field(default_factory=StatusGroups)
    timestamp: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ActivitySnapshot":
        groups = data.get("statusGroups") or {}
        return cls(
            issues=tuple(ActivityIssue.from_dict(i) for i in data.get("issues") or []),
            status_groups=StatusGroups(
                todo=parse_int(groups.get("todo")) or 0,
                in_progress=parse_int(groups.get("inProgress")) or 0,
                done=parse_int(groups.get("done")) or 0,
            ),
            timestamp=parse_int(data.get("timestamp"), default=None),
        )
