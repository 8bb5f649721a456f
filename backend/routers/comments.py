# routers/comments.py — Threaded issue comments
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from activity_log import record_activity
from auth import require_user
from database import get_db_session
from enrichment import load_comment, list_comment_outs
from errors import NotFound
from models import Comment, Issue, User, ActivityType, utcnow
from schemas import CommentOut
from workspace_scope import get_row

router = APIRouter(prefix="/api/v1/issues", tags=["Comments"])


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_id: Optional[str] = None


@router.post("/{issue_id}/comments", response_model=CommentOut)
async def create_comment(
    issue_id: str,
    data: CommentCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Post a comment (optionally as a reply) and log a `commented` activity"""
    await get_row(db, Issue, issue_id, "Issue")
    if data.parent_id is not None:
        parent = await db.get(Comment, data.parent_id)
        if parent is None or parent.issue_id != issue_id:
            raise NotFound("Parent comment not found")

    now = utcnow()
    comment = Comment(
        issue_id=issue_id,
        user_id=user.id,
        parent_id=data.parent_id,
        content=data.content,
        created_at=now,
        updated_at=now,
    )
    db.add(comment)
    await db.flush()

    record_activity(db, issue_id, user.id, ActivityType.COMMENTED)
    await db.commit()
    return await load_comment(db, comment.id)


@router.get("/{issue_id}/comments", response_model=List[CommentOut])
async def list_comments(
    issue_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    return await list_comment_outs(db, issue_id)
