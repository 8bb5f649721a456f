# auth.py — Identity resolution for Trackline
# Credentials are checked by the external identity provider. This module only:
# - verifies the provider-signed bearer token (JWT)
# - maps the token subject to a local User row
# - upserts that row on sign-in (user sync)

import os
import secrets
import logging
from typing import Optional, Dict, Any

from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from errors import Unauthorized
from models import User

logger = logging.getLogger("trackline.auth")

# ============================================================
# CONFIGURATION
# ============================================================

SECRET_KEY = os.getenv("IDENTITY_JWT_SECRET", "")
if not SECRET_KEY:
    SECRET_KEY = secrets.token_urlsafe(64)
    logger.warning(
        "⚠️  IDENTITY_JWT_SECRET not set. Generated ephemeral key; "
        "tokens from the identity provider will not verify."
    )

ALGORITHM = os.getenv("IDENTITY_JWT_ALGORITHM", "HS256")
AUDIENCE = os.getenv("IDENTITY_JWT_AUDIENCE") or None
ISSUER = os.getenv("IDENTITY_JWT_ISSUER") or None

security = HTTPBearer(auto_error=False)


# ============================================================
# PYDANTIC SCHEMAS
# ============================================================

class Identity(BaseModel):
    """The authenticated principal as supplied by the identity provider"""
    subject: str
    email: str = ""
    name: str = ""
    avatar_url: Optional[str] = None


# ============================================================
# IDENTITY SERVICE
# ============================================================

class IdentityService:

    @staticmethod
    def decode_token(token: str) -> Optional[Dict[str, Any]]:
        """Verify a provider token. Returns None for any invalid token."""
        try:
            return jwt.decode(
                token,
                SECRET_KEY,
                algorithms=[ALGORITHM],
                audience=AUDIENCE,
                issuer=ISSUER,
                options={"verify_aud": AUDIENCE is not None},
            )
        except ExpiredSignatureError:
            logger.debug("Rejected expired identity token")
            return None
        except JWTError as e:
            logger.debug(f"Rejected identity token: {e}")
            return None

    @staticmethod
    def identity_from_claims(claims: Dict[str, Any]) -> Optional[Identity]:
        subject = claims.get("sub")
        if not subject:
            return None
        return Identity(
            subject=subject,
            email=claims.get("email") or "",
            name=claims.get("name") or "",
            avatar_url=claims.get("picture"),
        )

    @staticmethod
    async def find_user(external_id: str, db: AsyncSession) -> Optional[User]:
        stmt = select(User).where(User.external_id == external_id)
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def sync_user(
        db: AsyncSession,
        external_id: str,
        email: str,
        name: str,
        avatar_url: Optional[str] = None,
    ) -> User:
        """Upsert the local user keyed by the provider subject.

        Existing rows get email, name and avatar refreshed in place; the
        caller commits.
        """
        user = await IdentityService.find_user(external_id, db)
        if user:
            user.email = email
            user.name = name
            user.avatar_url = avatar_url
            return user

        user = User(
            external_id=external_id,
            email=email,
            name=name,
            avatar_url=avatar_url,
        )
        db.add(user)
        await db.flush()
        logger.info(f"Registered user {user.id} for subject {external_id[:12]}")
        return user


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    """The caller's identity, or None when absent or unverifiable"""
    if credentials is None:
        return None
    claims = IdentityService.decode_token(credentials.credentials)
    if claims is None:
        return None
    return IdentityService.identity_from_claims(claims)


async def get_current_user(
    identity: Optional[Identity] = Depends(get_identity),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    """Resolved local user for queries; None instead of an error"""
    if identity is None:
        return None
    return await IdentityService.find_user(identity.subject, db)


async def require_identity(
    identity: Optional[Identity] = Depends(get_identity),
) -> Identity:
    if identity is None:
        raise Unauthorized()
    return identity


async def require_user(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Mutations that record an actor need a synced local user"""
    user = await IdentityService.find_user(identity.subject, db)
    if user is None:
        raise Unauthorized("User not found")
    return user
