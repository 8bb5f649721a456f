# routers/labels.py — Workspace labels and issue label links
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_identity, Identity
from database import get_db_session
from models import Label, IssueLabel, Issue
from schemas import LabelOut, IssueLabelOut, label_out, issue_label_out
from workspace_scope import get_workspace, get_row, get_scoped

router = APIRouter(prefix="/api/v1", tags=["Labels"])


class LabelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(..., min_length=1, max_length=20)


async def _find_link(db: AsyncSession, issue_id: str, label_id: str) -> Optional[IssueLabel]:
    stmt = select(IssueLabel).where(
        IssueLabel.issue_id == issue_id,
        IssueLabel.label_id == label_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


@router.get("/workspaces/{workspace_id}/labels", response_model=List[LabelOut])
async def list_labels(
    workspace_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    stmt = (
        select(Label)
        .where(Label.workspace_id == workspace_id)
        .order_by(Label.created_at.asc())
    )
    result = await db.execute(stmt)
    return [label_out(l) for l in result.scalars().all()]


@router.post("/workspaces/{workspace_id}/labels", response_model=LabelOut)
async def create_label(
    workspace_id: str,
    data: LabelCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    await get_workspace(db, workspace_id)

    label = Label(workspace_id=workspace_id, name=data.name, color=data.color)
    db.add(label)
    await db.commit()
    await db.refresh(label)
    return label_out(label)


@router.put("/issues/{issue_id}/labels/{label_id}", response_model=IssueLabelOut)
async def add_label_to_issue(
    issue_id: str,
    label_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    """Attach a label; attaching twice returns the existing link"""
    existing = await _find_link(db, issue_id, label_id)
    if existing:
        return issue_label_out(existing)

    issue = await get_row(db, Issue, issue_id, "Issue")
    await get_scoped(db, Label, label_id, issue.workspace_id, "Label")

    link = IssueLabel(issue_id=issue_id, label_id=label_id)
    db.add(link)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with an identical request
        await db.rollback()
        existing = await _find_link(db, issue_id, label_id)
        return issue_label_out(existing)
    return issue_label_out(link)


@router.delete("/issues/{issue_id}/labels/{label_id}", response_model=Optional[IssueLabelOut])
async def remove_label_from_issue(
    issue_id: str,
    label_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    """Detach a label; returns the removed link, or null if there was none"""
    link = await _find_link(db, issue_id, label_id)
    if link is None:
        return None

    removed = issue_label_out(link)
    await db.delete(link)
    await db.commit()
    return removed
