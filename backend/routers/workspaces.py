# routers/workspaces.py — Workspaces, membership and onboarding seed data
import re
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, require_user
from database import get_db_session
from errors import Conflict
from models import (
    Workspace, WorkspaceMember, User, Status, Label, MemberRole, StatusType,
)
from schemas import (
    WorkspaceOut, MembershipOut, MemberOut,
    workspace_out, membership_out, member_out,
)

logger = logging.getLogger("trackline.workspaces")

router = APIRouter(prefix="/api/v1/workspaces", tags=["Workspaces"])

# Seeded into every new workspace
DEFAULT_STATUSES = [
    {"name": "Backlog", "type": StatusType.TRIAGE, "color": "#8891A4"},
    {"name": "Todo", "type": StatusType.TODO, "color": "#8FBCBB"},
    {"name": "In Progress", "type": StatusType.DOING, "color": "#5E81AC"},
    {"name": "Review", "type": StatusType.REVIEW, "color": "#B48EAD"},
    {"name": "Done", "type": StatusType.DONE, "color": "#A3BE8C"},
]

DEFAULT_LABELS = [
    {"name": "No priority", "color": "#1F2937"},
    {"name": "Urgent", "color": "#DC2626"},
    {"name": "High", "color": "#EA580C"},
    {"name": "Medium", "color": "#2563EB"},
    {"name": "Low", "color": "#0EA5E9"},
]


# --- Schemas ---

class WorkspaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    identifier: Optional[str] = Field(default=None, max_length=50)


# --- Helpers ---

def _slugify(name: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')
    return slug[:50]


async def _identifier_taken(db: AsyncSession, identifier: str) -> bool:
    stmt = select(Workspace.id).where(Workspace.identifier == identifier)
    return (await db.execute(stmt)).first() is not None


# --- Endpoints ---

@router.post("", response_model=WorkspaceOut)
async def create_workspace(
    data: WorkspaceCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a workspace, make the caller its admin and seed statuses/labels"""
    identifier = (data.identifier or "").strip() or _slugify(data.name)
    if not identifier:
        raise HTTPException(status_code=422, detail="Workspace identifier cannot be derived from name")
    if await _identifier_taken(db, identifier):
        raise Conflict("Workspace identifier already in use")

    workspace = Workspace(
        name=data.name,
        description=data.description,
        identifier=identifier,
        created_by=user.id,
    )
    db.add(workspace)
    await db.flush()

    db.add(WorkspaceMember(workspace_id=workspace.id, user_id=user.id, role=MemberRole.ADMIN))

    for position, status_def in enumerate(DEFAULT_STATUSES):
        db.add(Status(
            workspace_id=workspace.id,
            name=status_def["name"],
            type=status_def["type"],
            color=status_def["color"],
            position=position,
        ))

    for label_def in DEFAULT_LABELS:
        db.add(Label(
            workspace_id=workspace.id,
            name=label_def["name"],
            color=label_def["color"],
        ))

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent create claimed the identifier first
        await db.rollback()
        raise Conflict("Workspace identifier already in use")

    logger.info(f"Workspace '{identifier}' created by {user.id}")
    return workspace_out(workspace)


@router.get("", response_model=List[WorkspaceOut])
async def list_workspaces(
    user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Workspaces the caller belongs to; empty when signed out"""
    if user is None:
        return []

    stmt = (
        select(Workspace)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .where(WorkspaceMember.user_id == user.id)
        .order_by(WorkspaceMember.joined_at.asc())
    )
    result = await db.execute(stmt)
    return [workspace_out(w) for w in result.scalars().all()]


@router.get("/by-identifier/{identifier}", response_model=Optional[WorkspaceOut])
async def get_workspace_by_identifier(
    identifier: str,
    db: AsyncSession = Depends(get_db_session),
):
    stmt = select(Workspace).where(Workspace.identifier == identifier)
    workspace = (await db.execute(stmt)).scalar_one_or_none()
    return workspace_out(workspace) if workspace else None


@router.get("/{workspace_id}/membership", response_model=Optional[MembershipOut])
async def get_workspace_membership(
    workspace_id: str,
    user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """The caller's membership row, or null"""
    if user is None:
        return None

    stmt = select(WorkspaceMember).where(
        WorkspaceMember.workspace_id == workspace_id,
        WorkspaceMember.user_id == user.id,
    )
    membership = (await db.execute(stmt)).scalar_one_or_none()
    return membership_out(membership) if membership else None


@router.get("/{workspace_id}/members", response_model=List[MemberOut])
async def list_members(
    workspace_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    """All users with a membership in the workspace, annotated with role"""
    stmt = (
        select(User, WorkspaceMember)
        .join(WorkspaceMember, WorkspaceMember.user_id == User.id)
        .where(WorkspaceMember.workspace_id == workspace_id)
        .order_by(WorkspaceMember.joined_at.asc())
    )
    result = await db.execute(stmt)
    return [member_out(u, m) for u, m in result.all()]
