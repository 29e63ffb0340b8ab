# presenters.py — Outbound schemas and enrichment shared by the submission routers
# Every entity goes out with its joined display fields (author name, specialty),
# so clients never need a second fetch. Authors removed by an admin render as None.
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models import (
    Submission, User, BoardNote, TaggedMember, ChatMessage, Partnership, PartnershipStatus,
    MeetingRequest, PartnershipMessage, SharedLink,
)
from policy import Actor, SubmissionFacts, Action, decide, is_reviewer, note_visible

# ============================================================
# SCHEMAS
# ============================================================


class NoteOut(BaseModel):
    id: str
    submission_id: str
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    text: str
    founder_visible: bool
    created_at: Optional[str] = None


class TaggedMemberOut(BaseModel):
    id: str
    name: str
    specialty: Optional[str] = None


class ChatMessageOut(BaseModel):
    id: str
    submission_id: str
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    author_role: Optional[str] = None
    text: str
    created_at: Optional[str] = None


class PartnerOut(BaseModel):
    id: str
    submission_id: str
    user_id: str
    name: Optional[str] = None
    specialty: Optional[str] = None
    company_name: Optional[str] = None
    status: str
    created_at: Optional[str] = None
    responded_at: Optional[str] = None


class MeetingOut(BaseModel):
    id: str
    submission_id: str
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    author_specialty: Optional[str] = None
    company_name: Optional[str] = None
    message: Optional[str] = None
    created_at: Optional[str] = None


class SharedLinkOut(BaseModel):
    id: str
    submission_id: str
    user_id: Optional[str] = None
    author_name: Optional[str] = None
    title: str
    url: str
    created_at: Optional[str] = None


class SubmissionOut(BaseModel):
    id: str
    user_id: str
    founder_name: Optional[str] = None
    company_name: str
    one_liner: str
    industry: str
    stage: str
    team_size: Optional[str] = None
    website: Optional[str] = None
    problem: str
    solution: str
    traction: str
    looking_for: List[str] = []
    funding_target: Optional[str] = None
    additional_notes: Optional[str] = None
    status: str
    rating: Optional[int] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    submitted_at: Optional[str] = None
    notes: List[NoteOut] = []
    tagged_members: List[TaggedMemberOut] = []
    chat_count: int = 0
    partner_count: int = 0


class SubmissionDetailOut(SubmissionOut):
    chat_messages: List[ChatMessageOut] = []
    partners: List[PartnerOut] = []


# ============================================================
# HELPERS
# ============================================================

def iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def enum_value(v) -> Optional[str]:
    return v.value if hasattr(v, "value") else v


async def _authored(db: AsyncSession, model, *where, newest_first: bool = False):
    """Rows of `model` with the author's name, specialty and role joined in."""
    order = model.created_at.desc() if newest_first else model.created_at.asc()
    stmt = (
        select(model, User.name, User.specialty, User.role)
        .outerjoin(User, User.id == model.user_id)
        .where(*where)
        .order_by(order)
    )
    result = await db.execute(stmt)
    return result.all()


def note_to_out(note: BoardNote, author_name: Optional[str]) -> NoteOut:
    return NoteOut(
        id=note.id,
        submission_id=note.submission_id,
        user_id=note.user_id,
        author_name=author_name,
        text=note.text,
        founder_visible=bool(note.founder_visible),
        created_at=iso(note.created_at),
    )


def chat_to_out(msg, author_name: Optional[str], author_role=None) -> ChatMessageOut:
    # Shared by discussion chat and partnership chat
    return ChatMessageOut(
        id=msg.id,
        submission_id=msg.submission_id,
        user_id=msg.user_id,
        author_name=author_name,
        author_role=enum_value(author_role),
        text=msg.text,
        created_at=iso(msg.created_at),
    )


def partner_to_out(p: Partnership, name: Optional[str], specialty: Optional[str],
                   company_name: Optional[str] = None) -> PartnerOut:
    return PartnerOut(
        id=p.id,
        submission_id=p.submission_id,
        user_id=p.user_id,
        name=name,
        specialty=specialty,
        company_name=company_name,
        status=enum_value(p.status),
        created_at=iso(p.created_at),
        responded_at=iso(p.responded_at),
    )


def meeting_to_out(m: MeetingRequest, author_name: Optional[str], author_specialty: Optional[str],
                   company_name: Optional[str] = None) -> MeetingOut:
    return MeetingOut(
        id=m.id,
        submission_id=m.submission_id,
        user_id=m.user_id,
        author_name=author_name,
        author_specialty=author_specialty,
        company_name=company_name,
        message=m.message,
        created_at=iso(m.created_at),
    )


def link_to_out(link: SharedLink, author_name: Optional[str]) -> SharedLinkOut:
    return SharedLinkOut(
        id=link.id,
        submission_id=link.submission_id,
        user_id=link.user_id,
        author_name=author_name,
        title=link.title,
        url=link.url,
        created_at=iso(link.created_at),
    )


# ============================================================
# LOADERS
# ============================================================

async def load_notes(db: AsyncSession, submission_id: str, actor: Actor, facts: SubmissionFacts) -> List[NoteOut]:
    rows = await _authored(db, BoardNote, BoardNote.submission_id == submission_id)
    return [
        note_to_out(note, name)
        for note, name, _, _ in rows
        if note_visible(actor, facts, note.founder_visible)
    ]


async def load_tagged(db: AsyncSession, submission_id: str) -> List[TaggedMemberOut]:
    result = await db.execute(
        select(User.id, User.name, User.specialty)
        .join(TaggedMember, TaggedMember.user_id == User.id)
        .where(TaggedMember.submission_id == submission_id)
        .order_by(TaggedMember.created_at.asc())
    )
    return [TaggedMemberOut(id=r.id, name=r.name, specialty=r.specialty) for r in result.all()]


async def load_chat(db: AsyncSession, submission_id: str) -> List[ChatMessageOut]:
    rows = await _authored(db, ChatMessage, ChatMessage.submission_id == submission_id)
    return [chat_to_out(msg, name, role) for msg, name, _, role in rows]


async def load_partnership_chat(db: AsyncSession, submission_id: str) -> List[ChatMessageOut]:
    rows = await _authored(db, PartnershipMessage, PartnershipMessage.submission_id == submission_id)
    return [chat_to_out(msg, name, role) for msg, name, _, role in rows]


async def load_partners(db: AsyncSession, submission_id: str) -> List[PartnerOut]:
    rows = await _authored(db, Partnership, Partnership.submission_id == submission_id)
    return [partner_to_out(p, name, specialty) for p, name, specialty, _ in rows]


async def load_meetings(db: AsyncSession, submission_id: str) -> List[MeetingOut]:
    rows = await _authored(db, MeetingRequest, MeetingRequest.submission_id == submission_id, newest_first=True)
    return [meeting_to_out(m, name, specialty) for m, name, specialty, _ in rows]


async def load_links(db: AsyncSession, submission_id: str) -> List[SharedLinkOut]:
    rows = await _authored(db, SharedLink, SharedLink.submission_id == submission_id, newest_first=True)
    return [link_to_out(link, name) for link, name, _, _ in rows]


async def _count(db: AsyncSession, column, *where) -> int:
    result = await db.execute(select(func.count(column)).where(*where))
    return result.scalar() or 0


async def submission_to_out(
    db: AsyncSession,
    sub: Submission,
    actor: Actor,
    facts: SubmissionFacts,
    founder_name: Optional[str] = None,
    detail: bool = False,
):
    if founder_name is None:
        founder = await db.get(User, sub.user_id)
        founder_name = founder.name if founder else None

    can_read_chat = bool(decide(actor, Action.READ_CHAT, facts))
    data = dict(
        id=sub.id,
        user_id=sub.user_id,
        founder_name=founder_name,
        company_name=sub.company_name,
        one_liner=sub.one_liner,
        industry=sub.industry,
        stage=sub.stage,
        team_size=sub.team_size,
        website=sub.website,
        problem=sub.problem,
        solution=sub.solution,
        traction=sub.traction,
        looking_for=list(sub.looking_for or []),
        funding_target=sub.funding_target,
        additional_notes=sub.additional_notes,
        status=enum_value(sub.status),
        rating=sub.rating,
        ai_analysis=sub.ai_analysis,
        submitted_at=iso(sub.submitted_at),
        notes=await load_notes(db, sub.id, actor, facts),
        tagged_members=await load_tagged(db, sub.id),
        partner_count=await _count(
            db, Partnership.id,
            Partnership.submission_id == sub.id,
            Partnership.status.in_((PartnershipStatus.PENDING, PartnershipStatus.ACCEPTED)),
        ),
    )

    if not detail:
        # Founders get no chat counter in listings
        if is_reviewer(actor):
            data["chat_count"] = await _count(db, ChatMessage.id, ChatMessage.submission_id == sub.id)
        return SubmissionOut(**data)

    data["chat_messages"] = await load_chat(db, sub.id) if can_read_chat else []
    if is_reviewer(actor):
        data["chat_count"] = len(data["chat_messages"])
    data["partners"] = await load_partners(db, sub.id) if decide(actor, Action.READ_PARTNERS, facts) else []
    return SubmissionDetailOut(**data)
