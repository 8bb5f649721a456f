# routers/issues.py — Issues: numbering, filtering, search and audited updates
import logging
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from activity_log import diff_issue, record_activity
from auth import require_identity, require_user, Identity
from database import get_db_session
from enrichment import ISSUE_JOINS, issue_to_out, load_issue
from models import Issue, IssuePriority, Project, Status, User, ActivityType, utcnow
from schemas import IssueOut
from sequences import ISSUE_NUMBER, next_sequence_value
from workspace_scope import get_workspace, get_row, get_scoped, check_user

logger = logging.getLogger("trackline.issues")

router = APIRouter(prefix="/api/v1", tags=["Issues"])

SEARCH_LIMIT = 50

# Columns that cannot be cleared
_REQUIRED_ON_UPDATE = ("title", "status_id", "priority")


# --- Schemas ---

class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    status_id: str
    priority: IssuePriority = IssuePriority.NONE
    project_id: Optional[str] = None
    assignee_id: Optional[str] = None
    due_date: Optional[datetime] = None
    estimate: Optional[float] = None


class IssueUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    status_id: Optional[str] = None
    priority: Optional[IssuePriority] = None
    assignee_id: Optional[str] = None
    project_id: Optional[str] = None
    due_date: Optional[datetime] = None
    estimate: Optional[float] = None


# --- Helpers ---

def _matches(issue, term: str, needle: str) -> bool:
    if needle in (issue.title or "").lower():
        return True
    if needle in (issue.description or "").lower():
        return True
    return term in str(issue.number)


async def _load_many(db: AsyncSession, ids: List[str]) -> List[IssueOut]:
    """Enrich issues by id, keeping the order of ``ids``"""
    if not ids:
        return []
    stmt = select(Issue).where(Issue.id.in_(ids)).options(*ISSUE_JOINS)
    by_id = {i.id: i for i in (await db.execute(stmt)).scalars().all()}
    return [issue_to_out(by_id[i]) for i in ids if i in by_id]


# --- Endpoints ---

@router.post("/workspaces/{workspace_id}/issues", response_model=IssueOut)
async def create_issue(
    workspace_id: str,
    data: IssueCreate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create an issue with the next workspace number and a `created` activity"""
    # References are checked before the counter is touched so the write
    # lock is only held for the inserts below.
    await get_workspace(db, workspace_id)
    await get_scoped(db, Status, data.status_id, workspace_id, "Status")
    if data.project_id is not None:
        await get_scoped(db, Project, data.project_id, workspace_id, "Project")
    await check_user(db, data.assignee_id)

    number = await next_sequence_value(db, workspace_id, ISSUE_NUMBER)

    now = utcnow()
    issue = Issue(
        workspace_id=workspace_id,
        number=number,
        title=data.title,
        description=data.description,
        status_id=data.status_id,
        priority=data.priority,
        project_id=data.project_id,
        assignee_id=data.assignee_id,
        created_by=user.id,
        due_date=data.due_date,
        estimate=data.estimate,
        archived=False,
        created_at=now,
        updated_at=now,
    )
    db.add(issue)
    await db.flush()

    record_activity(db, issue.id, user.id, ActivityType.CREATED)
    await db.commit()

    logger.info(f"Issue #{number} created in workspace {workspace_id}")
    return await load_issue(db, issue.id)


@router.get("/workspaces/{workspace_id}/issues", response_model=List[IssueOut])
async def list_issues(
    workspace_id: str,
    status_id: Optional[str] = Query(default=None),
    project_id: Optional[str] = Query(default=None),
    assignee_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
):
    """Non-archived issues, newest number first; supplied filters must all match"""
    stmt = select(Issue).where(
        Issue.workspace_id == workspace_id,
        Issue.archived.is_(False),
    )
    if status_id:
        stmt = stmt.where(Issue.status_id == status_id)
    if project_id:
        stmt = stmt.where(Issue.project_id == project_id)
    if assignee_id:
        stmt = stmt.where(Issue.assignee_id == assignee_id)

    stmt = stmt.options(*ISSUE_JOINS).order_by(Issue.number.desc())
    result = await db.execute(stmt)
    return [issue_to_out(i) for i in result.scalars().all()]


@router.get("/workspaces/{workspace_id}/issues/search", response_model=List[IssueOut])
async def search_issues(
    workspace_id: str,
    q: str = Query(""),
    db: AsyncSession = Depends(get_db_session),
):
    """Substring match on title, description or number"""
    stmt = (
        select(Issue.id, Issue.number, Issue.title, Issue.description)
        .where(Issue.workspace_id == workspace_id, Issue.archived.is_(False))
        .order_by(Issue.created_at.asc(), Issue.number.asc())
    )
    needle = q.lower()
    hits = []
    for row in (await db.execute(stmt)).all():
        if _matches(row, q, needle):
            hits.append(row.id)
            if len(hits) >= SEARCH_LIMIT:
                break

    return await _load_many(db, hits)


@router.get("/workspaces/{workspace_id}/issues/{number}", response_model=Optional[IssueOut])
async def get_issue_by_number(
    workspace_id: str,
    number: int,
    db: AsyncSession = Depends(get_db_session),
):
    stmt = (
        select(Issue)
        .where(Issue.workspace_id == workspace_id, Issue.number == number)
        .options(*ISSUE_JOINS)
    )
    issue = (await db.execute(stmt)).scalar_one_or_none()
    return issue_to_out(issue) if issue else None


@router.patch("/issues/{issue_id}", response_model=IssueOut)
async def update_issue(
    issue_id: str,
    data: IssueUpdate,
    user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Apply supplied fields and log one `updated` activity per changed field"""
    changes = data.model_dump(exclude_unset=True)
    for field in _REQUIRED_ON_UPDATE:
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be null")

    issue = await get_row(db, Issue, issue_id, "Issue")

    if "status_id" in changes:
        await get_scoped(db, Status, changes["status_id"], issue.workspace_id, "Status")
    if changes.get("project_id") is not None:
        await get_scoped(db, Project, changes["project_id"], issue.workspace_id, "Project")
    if "assignee_id" in changes:
        await check_user(db, changes["assignee_id"])

    now = utcnow()
    for ordinal, (field, old_value, new_value) in enumerate(diff_issue(issue, changes)):
        record_activity(
            db, issue.id, user.id, ActivityType.UPDATED,
            field=field, old_value=old_value, new_value=new_value,
            created_at=now, ordinal=ordinal,
        )

    for field, value in changes.items():
        setattr(issue, field, value)
    issue.updated_at = now

    await db.commit()
    return await load_issue(db, issue_id)


@router.delete("/issues/{issue_id}")
async def delete_issue(
    issue_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    """Archive an issue; comments, activities and label links are kept"""
    await db.execute(
        update(Issue).where(Issue.id == issue_id).values(archived=True)
    )
    await db.commit()
    return {"status": "archived", "issue_id": issue_id}
