# routers/statuses.py — Workspace-defined issue statuses
import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_identity, Identity
from database import get_db_session
from errors import Conflict
from models import Status, StatusType, Issue
from schemas import StatusOut, status_out
from workspace_scope import get_workspace, get_row

logger = logging.getLogger("trackline.statuses")

router = APIRouter(prefix="/api/v1", tags=["Statuses"])


class StatusCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: StatusType
    color: str = Field(..., min_length=1, max_length=20)
    position: int = 0


class StatusReorder(BaseModel):
    position: int


@router.get("/workspaces/{workspace_id}/statuses", response_model=List[StatusOut])
async def list_statuses(
    workspace_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    stmt = (
        select(Status)
        .where(Status.workspace_id == workspace_id)
        .order_by(Status.position.asc())
    )
    result = await db.execute(stmt)
    return [status_out(s) for s in result.scalars().all()]


@router.post("/workspaces/{workspace_id}/statuses", response_model=StatusOut)
async def create_status(
    workspace_id: str,
    data: StatusCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    await get_workspace(db, workspace_id)

    status = Status(
        workspace_id=workspace_id,
        name=data.name,
        type=data.type,
        color=data.color,
        position=data.position,
    )
    db.add(status)
    await db.commit()
    await db.refresh(status)
    return status_out(status)


@router.patch("/statuses/{status_id}/position", response_model=StatusOut)
async def update_status_order(
    status_id: str,
    data: StatusReorder,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    """Move a status; other statuses keep their positions"""
    status = await get_row(db, Status, status_id, "Status")
    status.position = data.position
    await db.commit()
    await db.refresh(status)
    return status_out(status)


@router.delete("/statuses/{status_id}")
async def delete_status(
    status_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a status no issue references, archived issues included"""
    status = await get_row(db, Status, status_id, "Status")

    stmt = select(Issue.id).where(Issue.status_id == status_id).limit(1)
    if (await db.execute(stmt)).first() is not None:
        raise Conflict("Cannot delete status with active issues")

    await db.delete(status)
    await db.commit()
    logger.info(f"Status {status_id} deleted from workspace {status.workspace_id}")
    return {"status": "deleted", "status_id": status_id}
