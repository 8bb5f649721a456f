# routers/projects.py — Workspace projects
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_identity, require_user, Identity
from database import get_db_session
from errors import Conflict
from models import Project, User
from schemas import ProjectOut, project_out
from workspace_scope import get_workspace, get_row

router = APIRouter(prefix="/api/v1", tags=["Projects"])

DEFAULT_PROJECT_COLOR = "#5E81AC"
DEFAULT_PROJECT_ICON = "📦"


# --- Schemas ---

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    identifier: str = Field(..., min_length=1, max_length=20)
    color: Optional[str] = None
    icon: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None


# --- Endpoints ---

@router.post("/workspaces/{workspace_id}/projects", response_model=ProjectOut)
async def create_project(
    workspace_id: str,
    data: ProjectCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a project; identifiers are unique within the workspace"""
    await get_workspace(db, workspace_id)

    stmt = select(Project.id).where(
        Project.workspace_id == workspace_id,
        Project.identifier == data.identifier,
    )
    if (await db.execute(stmt)).first() is not None:
        raise Conflict("Project identifier already in use")

    project = Project(
        workspace_id=workspace_id,
        name=data.name,
        description=data.description,
        identifier=data.identifier,
        created_by=user.id,
        color=data.color or DEFAULT_PROJECT_COLOR,
        icon=data.icon or DEFAULT_PROJECT_ICON,
        archived=False,
    )
    db.add(project)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Project identifier already in use")
    return project_out(project)


@router.get("/workspaces/{workspace_id}/projects", response_model=List[ProjectOut])
async def list_projects(
    workspace_id: str,
    db: AsyncSession = Depends(get_db_session),
):
    """Non-archived projects in the workspace"""
    stmt = (
        select(Project)
        .where(Project.workspace_id == workspace_id, Project.archived.is_(False))
        .order_by(Project.created_at.asc())
    )
    result = await db.execute(stmt)
    return [project_out(p) for p in result.scalars().all()]


@router.get("/workspaces/{workspace_id}/projects/{identifier}", response_model=Optional[ProjectOut])
async def get_project_by_identifier(
    workspace_id: str,
    identifier: str,
    db: AsyncSession = Depends(get_db_session),
):
    stmt = select(Project).where(
        Project.workspace_id == workspace_id,
        Project.identifier == identifier,
    )
    project = (await db.execute(stmt)).scalar_one_or_none()
    return project_out(project) if project else None


@router.patch("/projects/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    project = await get_row(db, Project, project_id, "Project")

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(project, field, value)

    await db.commit()
    await db.refresh(project)
    return project_out(project)


@router.post("/projects/{project_id}/archive")
async def archive_project(
    project_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    """Soft-delete a project; its issues keep their project reference"""
    await db.execute(
        update(Project).where(Project.id == project_id).values(archived=True)
    )
    await db.commit()
    return {"status": "archived", "project_id": project_id}
