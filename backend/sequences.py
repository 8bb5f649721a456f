# sequences.py — Per-workspace monotonic counters
"""
Issue numbers come from a single row per (workspace, sequence name).

The increment is one ``UPDATE ... SET value = value + 1 RETURNING value``
executed inside the caller's transaction, so the database row lock (or
SQLite's writer lock) serializes concurrent writers for the same key until
the surrounding mutation commits. A missing counter is created with
``INSERT ... ON CONFLICT DO NOTHING``; if a concurrent writer won that race,
the increment is simply retried against the row it created.
"""
import logging

from sqlalchemy import insert, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from models import WorkspaceSequence

logger = logging.getLogger("trackline.sequences")

ISSUE_NUMBER = "issueNumber"

_sequences = WorkspaceSequence.__table__


def _insert_if_absent(dialect_name: str):
    if dialect_name == "postgresql":
        return pg_insert(_sequences).on_conflict_do_nothing(
            index_elements=["workspace_id", "name"]
        )
    if dialect_name == "sqlite":
        return sqlite_insert(_sequences).on_conflict_do_nothing(
            index_elements=["workspace_id", "name"]
        )
    return insert(_sequences)


async def next_sequence_value(db: AsyncSession, workspace_id: str, name: str) -> int:
    """Return the next value of the (workspace_id, name) counter.

    The first call for a key returns 1. The caller owns the transaction;
    the counter row stays locked until it commits or rolls back.
    """
    increment = (
        update(_sequences)
        .where(_sequences.c.workspace_id == workspace_id, _sequences.c.name == name)
        .values(value=_sequences.c.value + 1)
        .returning(_sequences.c.value)
    )

    value = (await db.execute(increment)).scalar_one_or_none()
    if value is not None:
        return value

    dialect_name = db.get_bind().dialect.name
    create = (
        _insert_if_absent(dialect_name)
        .values(workspace_id=workspace_id, name=name, value=1)
        .returning(_sequences.c.value)
    )
    value = (await db.execute(create)).scalar_one_or_none()
    if value is not None:
        logger.debug(f"Started sequence {name} for workspace {workspace_id}")
        return value

    # Another transaction created the counter between our UPDATE and INSERT
    return (await db.execute(increment)).scalar_one()
