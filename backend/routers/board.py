# routers/board.py — Board member directory (tagging and partner pickers)
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_board, CurrentUser
from database import get_db_session
from models import User, UserRole

router = APIRouter(prefix="/api/v1/board-members", tags=["Board"])


class BoardMemberOut(BaseModel):
    id: str
    name: str
    specialty: Optional[str] = None


@router.get("", response_model=List[BoardMemberOut])
async def list_board_members(
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    result = await db.execute(
        select(User.id, User.name, User.specialty)
        .where(User.role == UserRole.BOARD)
        .order_by(User.name.asc())
    )
    return [BoardMemberOut(id=r.id, name=r.name, specialty=r.specialty) for r in result.all()]
