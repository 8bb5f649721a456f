# models.py — Database models for Trackline
# - String UUID primary keys everywhere
# - Every scoped row carries its workspace_id
# - Issues are archived, never physically removed
# - Activities are append-only

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, Boolean, Integer, Float,
    Enum as SQLEnum, ForeignKey, Text, Index, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# ENUMS
# ============================================================

class MemberRole(str, PyEnum):
    ADMIN = "admin"
    MEMBER = "member"


class StatusType(str, PyEnum):
    TRIAGE = "triage"
    TODO = "todo"
    DOING = "doing"
    REVIEW = "review"
    DONE = "done"


class IssuePriority(str, PyEnum):
    NONE = "none"
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActivityType(str, PyEnum):
    CREATED = "created"
    UPDATED = "updated"
    COMMENTED = "commented"


# ============================================================
# USERS
# ============================================================

class User(Base):
    """Local mirror of an identity-provider principal"""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    external_id = Column(String, unique=True, nullable=False, index=True)  # identity provider subject
    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, default="")
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    memberships = relationship("WorkspaceMember", back_populates="user")


# ============================================================
# WORKSPACES
# ============================================================

class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    identifier = Column(String, unique=True, nullable=False, index=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    members = relationship("WorkspaceMember", back_populates="workspace")


class WorkspaceMember(Base):
    __tablename__ = "workspace_members"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(SQLEnum(MemberRole), nullable=False, default=MemberRole.MEMBER)
    joined_at = Column(DateTime(timezone=True), default=utcnow)

    workspace = relationship("Workspace", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_member_workspace_user"),
    )


class WorkspaceSequence(Base):
    """Per-workspace monotonic counter, one row per (workspace, name)"""
    __tablename__ = "workspace_sequences"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    value = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uq_sequence_workspace_name"),
    )


# ============================================================
# PROJECTS
# ============================================================

class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    identifier = Column(String, nullable=False)  # short code, e.g. "WEB"
    created_by = Column(String, ForeignKey("users.id"), nullable=False)
    color = Column(String, default="#5E81AC")
    icon = Column(String, default="📦")
    archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("workspace_id", "identifier", name="uq_project_workspace_identifier"),
    )


# ============================================================
# TAXONOMY
# ============================================================

class Status(Base):
    """Workspace-defined stage; position gives display order"""
    __tablename__ = "statuses"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(SQLEnum(StatusType), nullable=False, default=StatusType.TODO)
    color = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_status_workspace_pos", "workspace_id", "position"),
    )


class Label(Base):
    __tablename__ = "labels"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=False, default="#6366f1")
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_label_workspace_name", "workspace_id", "name"),
    )


# ============================================================
# ISSUES
# ============================================================

class Issue(Base):
    __tablename__ = "issues"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False)  # assigned once from the workspace sequence
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status_id = Column(String, ForeignKey("statuses.id"), nullable=False, index=True)
    priority = Column(SQLEnum(IssuePriority), nullable=False, default=IssuePriority.NONE)
    project_id = Column(String, ForeignKey("projects.id"), nullable=True, index=True)
    assignee_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    estimate = Column(Float, nullable=True)
    archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    status = relationship("Status")
    project = relationship("Project")
    assignee = relationship("User", foreign_keys=[assignee_id])
    creator = relationship("User", foreign_keys=[created_by])
    labels = relationship("Label", secondary="issue_labels", viewonly=True, order_by="Label.created_at")

    __table_args__ = (
        UniqueConstraint("workspace_id", "number", name="uq_issue_workspace_number"),
        Index("idx_issue_workspace_updated", "workspace_id", "updated_at"),
    )


class IssueLabel(Base):
    __tablename__ = "issue_labels"

    id = Column(String, primary_key=True, default=new_uuid)
    issue_id = Column(String, ForeignKey("issues.id"), nullable=False, index=True)
    label_id = Column(String, ForeignKey("labels.id"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("issue_id", "label_id", name="uq_issue_label"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String, primary_key=True, default=new_uuid)
    issue_id = Column(String, ForeignKey("issues.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    parent_id = Column(String, ForeignKey("comments.id"), nullable=True, index=True)  # threading
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    user = relationship("User")


class Activity(Base):
    """Audit trail row for an issue; never updated"""
    __tablename__ = "activities"

    id = Column(String, primary_key=True, default=new_uuid)
    issue_id = Column(String, ForeignKey("issues.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(SQLEnum(ActivityType), nullable=False)
    field = Column(String, nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    ordinal = Column(Integer, nullable=False, default=0)  # position within one update

    user = relationship("User")

    __table_args__ = (
        Index("idx_activity_issue_time", "issue_id", "created_at"),
    )
