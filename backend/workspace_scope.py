# workspace_scope.py — Lookups that keep writes inside one workspace
from typing import Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import NotFound
from models import Workspace, User

T = TypeVar("T")


async def get_workspace(db: AsyncSession, workspace_id: str) -> Workspace:
    workspace = await db.get(Workspace, workspace_id)
    if not workspace:
        raise NotFound("Workspace not found")
    return workspace


async def get_row(db: AsyncSession, model: Type[T], row_id: str, label: str) -> T:
    row = await db.get(model, row_id)
    if row is None:
        raise NotFound(f"{label} not found")
    return row


async def get_scoped(
    db: AsyncSession, model: Type[T], row_id: str, workspace_id: str, label: str,
) -> T:
    """Fetch a workspace-owned row; rows of other workspaces count as missing"""
    stmt = select(model).where(model.id == row_id, model.workspace_id == workspace_id)
    row = (await db.execute(stmt)).scalar_one_or_none()
    if row is None:
        raise NotFound(f"{label} not found")
    return row


async def check_user(db: AsyncSession, user_id: Optional[str]) -> None:
    if user_id is not None and await db.get(User, user_id) is None:
        raise NotFound("User not found")
