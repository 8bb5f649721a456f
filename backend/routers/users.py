# routers/users.py — User sync and lookup
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from auth import IdentityService, Identity, get_current_user, require_identity
from database import get_db_session
from models import User
from schemas import UserOut, user_out

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


# --- Schemas ---

class UserSync(BaseModel):
    """Profile fields from the identity provider; token claims fill any gaps"""
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


# --- Endpoints ---

@router.post("/sync", response_model=UserOut)
async def sync_user(
    data: UserSync,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
):
    """Create or refresh the local user for the signed-in principal"""
    email = data.email or identity.email
    user = await IdentityService.sync_user(
        db,
        external_id=identity.subject,
        email=email,
        name=data.name or identity.name or email or "User",
        avatar_url=data.avatar_url or identity.avatar_url,
    )
    await db.commit()
    await db.refresh(user)
    return user_out(user)


@router.get("/me", response_model=Optional[UserOut])
async def get_me(user: Optional[User] = Depends(get_current_user)):
    """The caller's user record, or null"""
    return user_out(user) if user else None


@router.get("/{user_id}", response_model=Optional[UserOut])
async def get_user(user_id: str, db: AsyncSession = Depends(get_db_session)):
    user = await db.get(User, user_id)
    return user_out(user) if user else None
