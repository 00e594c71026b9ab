"""
Credential issuance and verification.

Passwords are hashed with bcrypt through passlib; access tokens are
HS256 JWTs whose ``sub`` claim carries the user id.  Tokens travel in
the ``Authorization`` header as ``Token <jwt>`` (``Bearer <jwt>`` is
accepted as well).

Routes pick one of three modes by their dependencies:

- ``require_viewer``: a valid token is mandatory, otherwise 401.
- ``optional_viewer``: a valid token identifies the viewer; a missing
  or invalid one resolves to an anonymous viewer (``None``).
- neither: the route never looks at credentials.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, Header
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.errors import UnauthorizedError
from app.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)

_ACCEPTED_SCHEMES = {settings.AUTH_HEADER_SCHEME.lower(), "token", "bearer"}


@dataclass(frozen=True)
class Viewer:
    user_id: int
    token: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int) -> str:
    """Return a signed JWT for *user_id*, valid for ``JWT_EXPIRY_HOURS``."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """
    Verify *token* and return the user id it was issued for.

    Raises:
        UnauthorizedError: if the token is expired, tampered with, or
            does not carry an integer subject.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise UnauthorizedError("token", "has expired") from e
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError("token", "is not valid") from e

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise UnauthorizedError("token", "is not valid") from e


def _extract_token(authorization: str | None) -> str:
    if not authorization:
        raise UnauthorizedError("token", "is missing")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() not in _ACCEPTED_SCHEMES or not token.strip():
        raise UnauthorizedError("token", "is not valid")
    return token.strip()


async def _resolve_viewer(db: AsyncSession, authorization: str | None) -> Viewer:
    token = _extract_token(authorization)
    user_id = decode_access_token(token)
    exists = (await db.execute(select(User.id).where(User.id == user_id))).scalar_one_or_none()
    if exists is None:
        raise UnauthorizedError("token", "is not valid")
    return Viewer(user_id=user_id, token=token)


async def require_viewer(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Viewer:
    return await _resolve_viewer(db, authorization)


async def optional_viewer(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Viewer | None:
    if not authorization:
        return None
    try:
        return await _resolve_viewer(db, authorization)
    except UnauthorizedError as exc:
        logger.debug("Treating request as anonymous: %s", exc)
        return None
