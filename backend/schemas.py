# schemas.py — Response schemas shared across routers
from datetime import datetime, timezone
from typing import Optional, List

from pydantic import BaseModel

from models import (
    User, Workspace, WorkspaceMember, Project, Status, Label, IssueLabel,
    Comment, Activity,
)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _ts(dt) -> Optional[str]:
    if dt is None:
        return None
    return as_utc(dt).isoformat() if isinstance(dt, datetime) else str(dt)


def _enum(value) -> Optional[str]:
    return getattr(value, "value", value)


# ============================================================
# USERS & WORKSPACES
# ============================================================

class UserOut(BaseModel):
    id: str
    external_id: str
    email: str
    name: str
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None


class MemberOut(UserOut):
    role: str
    joined_at: Optional[str] = None


class WorkspaceOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    identifier: str
    created_by: str
    created_at: Optional[str] = None


class MembershipOut(BaseModel):
    id: str
    workspace_id: str
    user_id: str
    role: str
    joined_at: Optional[str] = None


def user_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        external_id=u.external_id,
        email=u.email,
        name=u.name or "",
        avatar_url=u.avatar_url,
        created_at=_ts(u.created_at),
    )


def member_out(u: User, m: WorkspaceMember) -> MemberOut:
    return MemberOut(
        **user_out(u).model_dump(),
        role=_enum(m.role),
        joined_at=_ts(m.joined_at),
    )


def workspace_out(w: Workspace) -> WorkspaceOut:
    return WorkspaceOut(
        id=w.id,
        name=w.name,
        description=w.description,
        identifier=w.identifier,
        created_by=w.created_by,
        created_at=_ts(w.created_at),
    )


def membership_out(m: WorkspaceMember) -> MembershipOut:
    return MembershipOut(
        id=m.id,
        workspace_id=m.workspace_id,
        user_id=m.user_id,
        role=_enum(m.role),
        joined_at=_ts(m.joined_at),
    )


# ============================================================
# PROJECTS & TAXONOMY
# ============================================================

class ProjectOut(BaseModel):
    id: str
    workspace_id: str
    name: str
    description: Optional[str] = None
    identifier: str
    created_by: str
    color: Optional[str] = None
    icon: Optional[str] = None
    archived: bool
    created_at: Optional[str] = None


class StatusOut(BaseModel):
    id: str
    workspace_id: str
    name: str
    type: str
    color: str
    position: int


class LabelOut(BaseModel):
    id: str
    workspace_id: str
    name: str
    color: str
    created_at: Optional[str] = None


class IssueLabelOut(BaseModel):
    id: str
    issue_id: str
    label_id: str


def project_out(p: Project) -> ProjectOut:
    return ProjectOut(
        id=p.id,
        workspace_id=p.workspace_id,
        name=p.name,
        description=p.description,
        identifier=p.identifier,
        created_by=p.created_by,
        color=p.color,
        icon=p.icon,
        archived=p.archived or False,
        created_at=_ts(p.created_at),
    )


def status_out(s: Status) -> StatusOut:
    return StatusOut(
        id=s.id,
        workspace_id=s.workspace_id,
        name=s.name,
        type=_enum(s.type),
        color=s.color,
        position=s.position,
    )


def label_out(l: Label) -> LabelOut:
    return LabelOut(
        id=l.id,
        workspace_id=l.workspace_id,
        name=l.name,
        color=l.color,
        created_at=_ts(l.created_at),
    )


def issue_label_out(link: IssueLabel) -> IssueLabelOut:
    return IssueLabelOut(id=link.id, issue_id=link.issue_id, label_id=link.label_id)


# ============================================================
# ISSUES & COLLABORATION
# ============================================================

class IssueOut(BaseModel):
    id: str
    workspace_id: str
    number: int
    title: str
    description: Optional[str] = None
    status_id: str
    priority: str
    project_id: Optional[str] = None
    assignee_id: Optional[str] = None
    created_by: str
    due_date: Optional[str] = None
    estimate: Optional[float] = None
    archived: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    # Joined at read time
    status: Optional[StatusOut] = None
    assignee: Optional[UserOut] = None
    project: Optional[ProjectOut] = None
    creator: Optional[UserOut] = None
    labels: List[LabelOut] = []


class CommentOut(BaseModel):
    id: str
    issue_id: str
    user_id: str
    parent_id: Optional[str] = None
    content: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    user: Optional[UserOut] = None


class ActivityOut(BaseModel):
    id: str
    issue_id: str
    user_id: str
    type: str
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    created_at: Optional[str] = None
    user: Optional[UserOut] = None


def comment_out(c: Comment) -> CommentOut:
    return CommentOut(
        id=c.id,
        issue_id=c.issue_id,
        user_id=c.user_id,
        parent_id=c.parent_id,
        content=c.content,
        created_at=_ts(c.created_at),
        updated_at=_ts(c.updated_at),
        user=user_out(c.user) if c.user else None,
    )


def activity_out(a: Activity) -> ActivityOut:
    return ActivityOut(
        id=a.id,
        issue_id=a.issue_id,
        user_id=a.user_id,
        type=_enum(a.type),
        field=a.field,
        old_value=a.old_value,
        new_value=a.new_value,
        created_at=_ts(a.created_at),
        user=user_out(a.user) if a.user else None,
    )
