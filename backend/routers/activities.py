# routers/activities.py — Issue audit trail
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from enrichment import list_activity_outs
from schemas import ActivityOut

router = APIRouter(prefix="/api/v1/issues", tags=["Activities"])


@router.get("/{issue_id}/activities", response_model=List[ActivityOut])
async def list_activities(
    issue_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    """Oldest first, each with its acting user"""
    return await list_activity_outs(db, issue_id)
