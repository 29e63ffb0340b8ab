# tests/test_analytics.py — Dashboard aggregates
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from analytics_engine import (
    NO_RATING, MemberActivity, SubmissionRow, approval_rate, average_rating, count_by, leaderboard,
    summarize, top_rated, week_key, weekly_volume,
)
from models import SubmissionStatus
from tests.conftest import get_auth_headers, make_submission

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def row(i, status="new", rating=None, industry="FinTech", stage="Seed", days_ago=0):
    return SubmissionRow(
        id=f"s{i}", company_name=f"Co{i}", industry=industry, stage=stage,
        status=status, rating=rating, submitted_at=NOW - timedelta(days=days_ago),
    )


class TestApprovalRate:
    def test_rounds_half_up(self):
        assert approval_rate(2, 1) == 67
        assert approval_rate(1, 2) == 33
        assert approval_rate(1, 7) == 13  # 12.5 rounds up

    def test_no_decisions(self):
        assert approval_rate(0, 0) == 0

    def test_all_approved(self):
        assert approval_rate(4, 0) == 100


class TestAverageRating:
    def test_one_decimal(self):
        assert average_rating([4, 5, None]) == "4.5"
        assert average_rating([3]) == "3.0"

    def test_halves_round_up(self):
        assert average_rating([2, 2, 2, 3]) == "2.3"
        assert average_rating([1, 1, 1, 2]) == "1.3"
        assert average_rating([4, 4, 4, 5]) == "4.3"

    def test_no_ratings(self):
        assert average_rating([]) == NO_RATING
        assert average_rating([None, None]) == NO_RATING


class TestWeekly:
    def test_week_key_is_monday_based(self):
        # 2026-01-01 is a Thursday; the first Monday opens week 01
        assert week_key(datetime(2026, 1, 4)) == "2026-00"
        assert week_key(datetime(2026, 1, 5)) == "2026-01"

    def test_naive_datetimes_treated_as_utc(self):
        assert week_key(datetime(2026, 1, 5, 0, 30)) == week_key(datetime(2026, 1, 5, 0, 30, tzinfo=timezone.utc))

    def test_window_drops_old_submissions(self):
        dates = [NOW, NOW - timedelta(days=1), NOW - timedelta(days=20), NOW - timedelta(days=90)]
        volume = weekly_volume(dates, NOW)
        assert sum(w["count"] for w in volume) == 3
        assert volume == sorted(volume, key=lambda w: w["week"])

    def test_window_starts_at_midnight(self):
        # NOW is noon; earlier in the day 56 days back still counts, the day before does not
        boundary_morning = (NOW - timedelta(days=56)).replace(hour=8)
        day_before = (NOW - timedelta(days=57)).replace(hour=23)
        volume = weekly_volume([boundary_morning, day_before], NOW)
        assert volume == [{"week": week_key(boundary_morning), "count": 1}]


class TestBreakdowns:
    def test_industry_ordered_by_count(self):
        rows = [row(1, industry="AgTech"), row(2), row(3), row(4, industry="HealthTech")]
        assert count_by(rows, "industry", order_by_count=True) == [
            {"industry": "FinTech", "count": 2},
            {"industry": "AgTech", "count": 1},
            {"industry": "HealthTech", "count": 1},
        ]

    def test_top_rated(self):
        rows = [row(1, rating=3), row(2, rating=5), row(3), row(4, rating=4)]
        assert [r["company_name"] for r in top_rated(rows)] == ["Co2", "Co4", "Co1"]
        assert len(top_rated([row(i, rating=5) for i in range(10)])) == 6

    def test_leaderboard_weights(self):
        members = [
            MemberActivity(user_id="a", name="Aisha", notes=4),
            MemberActivity(user_id="b", name="Ben", accepted_partnerships=1),
            MemberActivity(user_id="c", name="Cara", meetings=1, notes=2),
            MemberActivity(user_id="d", name="Dan", notes=4),
        ]
        ranked = leaderboard(members)
        assert [(m["name"], m["score"]) for m in ranked] == [
            ("Ben", 5), ("Cara", 5), ("Aisha", 4), ("Dan", 4),
        ]

    def test_summary_shape(self):
        rows = [
            row(1, status="approved", rating=5),
            row(2, status="approved", rating=4),
            row(3, status="passed", rating=2),
            row(4, status="new"),
        ]
        summary = summarize(rows, now=NOW)
        assert summary["total"] == 4
        assert summary["approval_rate"] == 67
        assert summary["avg_rating"] == "3.7"
        assert {"status": "approved", "count": 2} in summary["by_status"]
        assert summary["rating_distribution"] == [
            {"rating": 2, "count": 1}, {"rating": 4, "count": 1}, {"rating": 5, "count": 1},
        ]
        assert summary["partnerships"] == {"pending": 0, "accepted": 0, "declined": 0}
        assert summary["users"] == {"founder": 0, "board": 0, "admin": 0}

    def test_empty_platform(self):
        summary = summarize([], now=NOW)
        assert summary["total"] == 0
        assert summary["avg_rating"] == NO_RATING
        assert summary["approval_rate"] == 0
        assert summary["weekly_volume"] == []
        assert summary["leaderboard"] == []


@pytest.mark.asyncio
class TestAnalyticsEndpoint:
    async def test_board_dashboard(self, client: AsyncClient, db_session, founder_user, board_user, admin_user):
        await make_submission(db_session, founder_user, status=SubmissionStatus.APPROVED, rating=5)
        await make_submission(db_session, founder_user, company_name="TerraFarm", industry="AgTech",
                              status=SubmissionStatus.PASSED, rating=3)
        target = await make_submission(db_session, founder_user, company_name="MediScan", industry="HealthTech")

        headers = get_auth_headers(board_user)
        await client.post(f"/api/v1/submissions/{target.id}/notes", headers=headers, json={"text": "Promising"})
        await client.post(f"/api/v1/submissions/{target.id}/meeting", headers=headers, json={})

        res = await client.get("/api/v1/analytics", headers=headers)
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 3
        assert data["approval_rate"] == 50
        assert data["avg_rating"] == "4.0"
        assert data["meetings_total"] == 1
        assert data["users"] == {"founder": 1, "board": 1, "admin": 1}
        assert data["leaderboard"] == [{
            "user_id": board_user.id,
            "name": "Sarah Kingston",
            "specialty": "Healthcare & BioTech",
            "notes": 1,
            "accepted_partnerships": 0,
            "meetings": 1,
            "score": 4,
        }]

    async def test_founder_forbidden(self, client: AsyncClient, founder_user):
        res = await client.get("/api/v1/analytics", headers=get_auth_headers(founder_user))
        assert res.status_code == 403
