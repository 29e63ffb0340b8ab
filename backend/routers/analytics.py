# routers/analytics.py — Board dashboard statistics
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from analytics_engine import build_report
from auth import require_board, CurrentUser
from database import get_db_session

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


@router.get("")
async def get_analytics(
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Pipeline counts, rating stats, weekly volume and the board leaderboard"""
    return await build_report(db)
