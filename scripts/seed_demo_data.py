#!/usr/bin/env python3
"""
Partner — Demo Data Seeder
Loads a demo founder, the five-member board, an admin and three reviewed
submissions with notes, tags and discussion chat. Does nothing if the
users table already has rows.

Usage:
    python scripts/seed_demo_data.py
    python scripts/seed_demo_data.py --password Demo1234! --admin-email admin@partner.io

All demo accounts share one password (default: Demo1234!).
"""

import argparse
import asyncio
from datetime import datetime, timezone

from sqlalchemy import select, func

from auth import AuthService
from database import get_db_context, init_db, close_db
from models import (
    User, UserRole, Submission, SubmissionStatus, BoardNote, TaggedMember, ChatMessage,
)


# ── Demo content ────────────────────────────────────────────

FOUNDER = {
    "email": "founder@demo.com",
    "name": "Alex Chen",
    "bio": "Serial entrepreneur focused on financial inclusion.",
    "location": "San Francisco, CA",
}

BOARD = [
    ("sarah@partner.io", "Sarah Kingston", "Healthcare & BioTech"),
    ("james@partner.io", "James Morrow", "FinTech & SaaS"),
    ("aisha@partner.io", "Aisha Patel", "AI & Deep Tech"),
    ("david@partner.io", "David Chen", "Operations & Growth"),
    ("maya@partner.io", "Maya Roberts", "Impact & CleanTech"),
]

SUBMISSIONS = [
    {
        "company_name": "NeuralPay",
        "one_liner": "AI-powered fraud detection for African mobile money platforms",
        "industry": "FinTech", "stage": "Seed", "team_size": "6-15", "website": "https://neuralpay.io",
        "problem": "Mobile money fraud costs African platforms $4.2B annually.",
        "solution": "ML models trained on African mobile money patterns. 84% fraud reduction.",
        "traction": "3 telco pilots. $180K ARR. 2M transactions/month.",
        "looking_for": ["Investment", "Strategic Partnerships"], "funding_target": "$2M Seed Round",
        "status": SubmissionStatus.UNDER_REVIEW, "rating": 4, "submitted_at": "2026-02-10",
    },
    {
        "company_name": "PayFlow",
        "one_liner": "Instant cross-border payments for freelancers in Africa",
        "industry": "FinTech", "stage": "Series A", "team_size": "16-50", "website": "https://payflow.io",
        "problem": "Cross-border payments take 3-5 days and cost 8-12% in fees.",
        "solution": "Instant settlement via stablecoin rails with local currency on/off ramps.",
        "traction": "12K active users. $2.1M monthly volume. $480K ARR.",
        "looking_for": ["Investment", "Board Advisors"], "funding_target": "$5M Series A",
        "status": SubmissionStatus.APPROVED, "rating": 5, "submitted_at": "2026-01-20",
    },
    {
        "company_name": "QuickLedger",
        "one_liner": "Automated bookkeeping for SMBs in emerging markets",
        "industry": "FinTech", "stage": "Pre-Seed", "team_size": "2-5", "website": None,
        "problem": "SMBs spend 15+ hours/week on manual bookkeeping.",
        "solution": "OCR-powered receipt scanning with automated categorization.",
        "traction": "200 beta users. 30 interviews completed.",
        "looking_for": ["Investment", "Mentorship"], "funding_target": "$400K Pre-Seed",
        "status": SubmissionStatus.PASSED, "rating": 2, "submitted_at": "2025-12-05",
    },
]

# (submission index, board index, text, founder_visible, date)
NOTES = [
    (0, 0, "Strong product-market fit. Requesting financial projections.", True, "2026-02-13"),
    (1, 0, "Exceptional traction. Connecting with our healthcare network.", True, "2026-02-01"),
    (1, 1, "Internal: verify regulatory compliance before introductions.", False, "2026-02-03"),
    (2, 0, "Market too competitive. Encouraged to reapply.", True, "2025-12-15"),
]

# (submission index, tagged board index, tagging board index)
TAGS = [(0, 1, 0), (0, 2, 0)]

# (submission index, board index, text, timestamp)
CHAT = [
    (0, 0, "Strong FinTech play. @James evaluate fraud claims?", "2026-02-11T09:15:00"),
    (0, 1, "84% fraud reduction credible. Want false positive breakdown.", "2026-02-11T14:30:00"),
    (0, 2, "ML approach solid. Requesting training data methodology.", "2026-02-12T10:45:00"),
]


def _at(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


# ── Seeding ─────────────────────────────────────────────────

async def seed(password: str, admin_email: str) -> dict:
    await init_db()
    async with get_db_context() as db:
        existing = await db.execute(select(func.count(User.id)))
        if existing.scalar():
            return {}

        password_hash = AuthService.hash_password(password)

        def user(email, name, role, **extra):
            u = User(email=email, name=name, role=role, password_hash=password_hash, **extra)
            db.add(u)
            return u

        founder = user(FOUNDER["email"], FOUNDER["name"], UserRole.FOUNDER,
                       bio=FOUNDER["bio"], location=FOUNDER["location"])
        board = [user(email, name, UserRole.BOARD, specialty=specialty) for email, name, specialty in BOARD]
        user(admin_email, "Platform Admin", UserRole.ADMIN)
        await db.flush()

        submissions = []
        for data in SUBMISSIONS:
            fields = dict(data, submitted_at=_at(data["submitted_at"]))
            sub = Submission(user_id=founder.id, **fields)
            db.add(sub)
            submissions.append(sub)
        await db.flush()

        for sub_i, member_i, text, visible, date in NOTES:
            db.add(BoardNote(submission_id=submissions[sub_i].id, user_id=board[member_i].id,
                             text=text, founder_visible=visible, created_at=_at(date)))
        for sub_i, member_i, by_i in TAGS:
            db.add(TaggedMember(submission_id=submissions[sub_i].id, user_id=board[member_i].id,
                                tagged_by=board[by_i].id))
        for sub_i, member_i, text, ts in CHAT:
            db.add(ChatMessage(submission_id=submissions[sub_i].id, user_id=board[member_i].id,
                               text=text, created_at=_at(ts)))

    return {
        "users": 2 + len(BOARD),
        "submissions": len(SUBMISSIONS),
        "notes": len(NOTES),
        "tags": len(TAGS),
        "chat_messages": len(CHAT),
    }


async def _run(args) -> dict:
    try:
        return await seed(args.password, args.admin_email.strip().lower())
    finally:
        await close_db()


# ── CLI ─────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(description="Partner Demo Data Seeder")
    parser.add_argument("--password", type=str, default="Demo1234!", help="Password for every demo account")
    parser.add_argument("--admin-email", type=str, default="admin@partner.io", help="Admin account e-mail")
    args = parser.parse_args()

    counts = asyncio.run(_run(args))
    if not counts:
        print("Database already seeded, skipping.")
        return

    print("✅ Demo data seeded")
    print(f"   Users: {counts['users']}")
    print(f"   Submissions: {counts['submissions']}")
    print(f"   Board Notes: {counts['notes']}")
    print(f"   Tags: {counts['tags']}")
    print(f"   Chat Messages: {counts['chat_messages']}")
    print(f"   Total Records: {sum(counts.values())}")


if __name__ == "__main__":
    main()
