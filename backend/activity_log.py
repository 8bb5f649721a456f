# activity_log.py — Append-only issue activity and update diffing
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from models import Activity, ActivityType, Issue, utcnow
from schemas import as_utc

# Issue attributes whose changes are written to the activity log, in the
# order their activity rows are appended.
TRACKED_FIELDS = (
    "title",
    "description",
    "status_id",
    "priority",
    "assignee_id",
    "project_id",
    "due_date",
    "estimate",
)


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return as_utc(value)
    return getattr(value, "value", value)


def activity_text(value: Any) -> Optional[str]:
    """Stringify a field value for the log; falsy values are stored as absent."""
    value = _comparable(value)
    if not value:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def diff_issue(issue: Issue, changes: Dict[str, Any]) -> Iterator[Tuple[str, Optional[str], Optional[str]]]:
    """Yield (field, old, new) for each supplied field whose value differs."""
    for field in TRACKED_FIELDS:
        if field not in changes:
            continue
        old = _comparable(getattr(issue, field))
        new = _comparable(changes[field])
        if old != new:
            yield field, activity_text(old), activity_text(new)


def record_activity(
    db: AsyncSession,
    issue_id: str,
    user_id: str,
    activity_type: ActivityType,
    field: Optional[str] = None,
    old_value: Optional[str] = None,
    new_value: Optional[str] = None,
    created_at: Optional[datetime] = None,
    ordinal: int = 0,
) -> Activity:
    """Stage an activity row in the caller's transaction.

    Rows written by one update share `created_at` and are told apart by
    `ordinal`, which follows TRACKED_FIELDS order.
    """
    entry = Activity(
        issue_id=issue_id,
        user_id=user_id,
        type=activity_type,
        field=field,
        old_value=old_value,
        new_value=new_value,
        created_at=created_at or utcnow(),
        ordinal=ordinal,
    )
    db.add(entry)
    return entry
