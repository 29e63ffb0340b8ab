"""
Partner — Analytics Engine

Read-side aggregation over submissions, partnerships, meeting requests and users.
The summary functions are pure (plain rows in, plain dicts out); `build_report`
loads the rows with a handful of grouped queries and hands them over.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models import (
    Submission, SubmissionStatus, Partnership, PartnershipStatus, MeetingRequest,
    BoardNote, User, UserRole,
)

NO_RATING = "N/A"
WEEKLY_WINDOW_DAYS = 56
TOP_RATED_LIMIT = 6

# Leaderboard weights are a product decision; keep in sync with the dashboard copy
NOTE_WEIGHT = 1
ACCEPTED_PARTNERSHIP_WEIGHT = 5
MEETING_WEIGHT = 3


@dataclass
class SubmissionRow:
    id: str
    company_name: str
    industry: str
    stage: str
    status: str
    rating: Optional[int]
    submitted_at: Optional[datetime]


@dataclass
class MemberActivity:
    user_id: str
    name: str
    specialty: Optional[str] = None
    notes: int = 0
    accepted_partnerships: int = 0
    meetings: int = 0

    @property
    def score(self) -> int:
        return (
            self.notes * NOTE_WEIGHT
            + self.accepted_partnerships * ACCEPTED_PARTNERSHIP_WEIGHT
            + self.meetings * MEETING_WEIGHT
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "specialty": self.specialty,
            "notes": self.notes,
            "accepted_partnerships": self.accepted_partnerships,
            "meetings": self.meetings,
            "score": self.score,
        }


def _enum_value(v) -> str:
    return v.value if hasattr(v, "value") else v


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


# ============================================================
# PURE AGGREGATES
# ============================================================

def approval_rate(approved: int, passed: int) -> int:
    """approved / (approved + passed) as a whole percent, halves rounded up; 0 if undecided."""
    decided = approved + passed
    if decided == 0:
        return 0
    return (200 * approved + decided) // (2 * decided)


def average_rating(ratings: Iterable[Optional[int]]) -> str:
    values = [r for r in ratings if r is not None]
    if not values:
        return NO_RATING
    mean = Decimal(str(sum(values) / len(values)))
    return str(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def count_by(rows: Iterable[SubmissionRow], field: str, order_by_count: bool = False) -> List[Dict[str, Any]]:
    counts = Counter(getattr(r, field) for r in rows)
    items = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]) if order_by_count else kv[0])
    return [{field: key, "count": count} for key, count in items]


def week_key(dt: datetime) -> str:
    """Year and Monday-based week number, e.g. '2026-06'."""
    return _as_utc(dt).strftime("%Y-%W")


def weekly_volume(dates: Iterable[Optional[datetime]], now: datetime,
                  window_days: int = WEEKLY_WINDOW_DAYS) -> List[Dict[str, Any]]:
    # The window opens at midnight UTC, window_days before today
    cutoff = (_as_utc(now) - timedelta(days=window_days)).replace(hour=0, minute=0, second=0, microsecond=0)
    counts = Counter(week_key(d) for d in dates if d is not None and _as_utc(d) >= cutoff)
    return [{"week": week, "count": counts[week]} for week in sorted(counts)]


def rating_distribution(rows: Iterable[SubmissionRow]) -> List[Dict[str, Any]]:
    counts = Counter(r.rating for r in rows if r.rating is not None)
    return [{"rating": rating, "count": counts[rating]} for rating in sorted(counts)]


def top_rated(rows: Iterable[SubmissionRow], limit: int = TOP_RATED_LIMIT) -> List[Dict[str, Any]]:
    rated = sorted((r for r in rows if r.rating is not None), key=lambda r: -r.rating)
    return [
        {"id": r.id, "company_name": r.company_name, "industry": r.industry, "stage": r.stage, "rating": r.rating}
        for r in rated[:limit]
    ]


def leaderboard(members: Iterable[MemberActivity]) -> List[Dict[str, Any]]:
    ranked = sorted(members, key=lambda m: (-m.score, m.name))
    return [m.to_dict() for m in ranked]


def summarize(
    rows: List[SubmissionRow],
    members: Iterable[MemberActivity] = (),
    partnership_counts: Optional[Dict[str, int]] = None,
    meetings_total: int = 0,
    users_by_role: Optional[Dict[str, int]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    statuses = Counter(r.status for r in rows)
    return {
        "total": len(rows),
        "by_status": count_by(rows, "status"),
        "by_industry": count_by(rows, "industry", order_by_count=True),
        "by_stage": count_by(rows, "stage"),
        "avg_rating": average_rating(r.rating for r in rows),
        "approval_rate": approval_rate(
            statuses.get(SubmissionStatus.APPROVED.value, 0),
            statuses.get(SubmissionStatus.PASSED.value, 0),
        ),
        "weekly_volume": weekly_volume((r.submitted_at for r in rows), now),
        "rating_distribution": rating_distribution(rows),
        "top_rated": top_rated(rows),
        "leaderboard": leaderboard(members),
        "partnerships": {s.value: (partnership_counts or {}).get(s.value, 0) for s in PartnershipStatus},
        "meetings_total": meetings_total,
        "users": {r.value: (users_by_role or {}).get(r.value, 0) for r in UserRole},
    }


# ============================================================
# LOADING
# ============================================================

async def _grouped_counts(db: AsyncSession, key_column, *where) -> Dict[Any, int]:
    stmt = select(key_column, func.count()).group_by(key_column)
    for clause in where:
        stmt = stmt.where(clause)
    result = await db.execute(stmt)
    return {key: count for key, count in result.all()}


async def build_report(db: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
    result = await db.execute(select(
        Submission.id, Submission.company_name, Submission.industry, Submission.stage,
        Submission.status, Submission.rating, Submission.submitted_at,
    ))
    rows = [
        SubmissionRow(
            id=r.id, company_name=r.company_name, industry=r.industry, stage=r.stage,
            status=_enum_value(r.status), rating=r.rating, submitted_at=r.submitted_at,
        )
        for r in result.all()
    ]

    notes = await _grouped_counts(db, BoardNote.user_id)
    accepted = await _grouped_counts(db, Partnership.user_id, Partnership.status == PartnershipStatus.ACCEPTED)
    meetings = await _grouped_counts(db, MeetingRequest.user_id)

    members_result = await db.execute(
        select(User.id, User.name, User.specialty).where(User.role == UserRole.BOARD)
    )
    members = [
        MemberActivity(
            user_id=m.id, name=m.name, specialty=m.specialty,
            notes=notes.get(m.id, 0),
            accepted_partnerships=accepted.get(m.id, 0),
            meetings=meetings.get(m.id, 0),
        )
        for m in members_result.all()
    ]

    partnership_counts = {_enum_value(k): v for k, v in (await _grouped_counts(db, Partnership.status)).items()}
    users_by_role = {_enum_value(k): v for k, v in (await _grouped_counts(db, User.role)).items()}

    return summarize(
        rows,
        members=members,
        partnership_counts=partnership_counts,
        meetings_total=sum(meetings.values()),
        users_by_role=users_by_role,
        now=now,
    )
