# enrichment.py — Read-side joins for issues, comments and activities
# Every read resolves referenced rows at call time; nothing is denormalized.
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Issue, Comment, Activity
from schemas import (
    IssueOut, CommentOut, ActivityOut, _ts, _enum,
    user_out, status_out, project_out, label_out, comment_out, activity_out,
)

ISSUE_JOINS = (
    selectinload(Issue.status),
    selectinload(Issue.assignee),
    selectinload(Issue.project),
    selectinload(Issue.creator),
    selectinload(Issue.labels),
)


def issue_to_out(issue: Issue) -> IssueOut:
    """Convert an Issue loaded with ISSUE_JOINS to IssueOut"""
    return IssueOut(
        id=issue.id,
        workspace_id=issue.workspace_id,
        number=issue.number,
        title=issue.title,
        description=issue.description,
        status_id=issue.status_id,
        priority=_enum(issue.priority),
        project_id=issue.project_id,
        assignee_id=issue.assignee_id,
        created_by=issue.created_by,
        due_date=_ts(issue.due_date),
        estimate=issue.estimate,
        archived=issue.archived or False,
        created_at=_ts(issue.created_at),
        updated_at=_ts(issue.updated_at),
        status=status_out(issue.status) if issue.status else None,
        assignee=user_out(issue.assignee) if issue.assignee else None,
        project=project_out(issue.project) if issue.project else None,
        creator=user_out(issue.creator) if issue.creator else None,
        labels=[label_out(l) for l in issue.labels],
    )


async def load_issue(db: AsyncSession, issue_id: str) -> Optional[IssueOut]:
    """Fetch one issue with fresh joins, or None"""
    stmt = (
        select(Issue)
        .where(Issue.id == issue_id)
        .options(*ISSUE_JOINS)
        .execution_options(populate_existing=True)
    )
    issue = (await db.execute(stmt)).scalar_one_or_none()
    return issue_to_out(issue) if issue else None


async def load_comment(db: AsyncSession, comment_id: str) -> Optional[CommentOut]:
    stmt = (
        select(Comment)
        .where(Comment.id == comment_id)
        .options(selectinload(Comment.user))
        .execution_options(populate_existing=True)
    )
    comment = (await db.execute(stmt)).scalar_one_or_none()
    return comment_out(comment) if comment else None


async def list_comment_outs(db: AsyncSession, issue_id: str) -> List[CommentOut]:
    stmt = (
        select(Comment)
        .where(Comment.issue_id == issue_id)
        .options(selectinload(Comment.user))
        .order_by(Comment.created_at.asc())
    )
    result = await db.execute(stmt)
    return [comment_out(c) for c in result.scalars().all()]


async def list_activity_outs(db: AsyncSession, issue_id: str) -> List[ActivityOut]:
    stmt = (
        select(Activity)
        .where(Activity.issue_id == issue_id)
        .options(selectinload(Activity.user))
        .order_by(Activity.created_at.asc(), Activity.ordinal.asc())
    )
    result = await db.execute(stmt)
    return [activity_out(a) for a in result.scalars().all()]
