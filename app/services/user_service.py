"""
User service: registration, login and the authenticated user's own
account.

Email and username uniqueness is checked up front so the client gets a
field-specific conflict; the database unique constraints stay as the
last line (surfaced as a generic 409 by the integrity error handler).
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import Viewer, create_access_token, hash_password, verify_password
from app.errors import ConflictError, ForbiddenError, NotFoundError
from app.models import User
from app.projection import project_user
from app.schemas import UserLogin, UserRegister, UserUpdate

logger = logging.getLogger(__name__)


async def _ensure_unique(
    db: AsyncSession, email: str | None, username: str | None, exclude_id: int | None = None
) -> None:
    for field, column, value in (("email", User.email, email), ("username", User.username, username)):
        if value is None:
            continue
        q = select(User.id).where(column == value)
        if exclude_id is not None:
            q = q.where(User.id != exclude_id)
        if (await db.execute(q)).scalar_one_or_none() is not None:
            raise ConflictError(field, "has already been taken")


async def register(db: AsyncSession, data: UserRegister) -> dict:
    await _ensure_unique(db, data.email, data.username)

    user = User(
        email=data.email,
        username=data.username,
        password_hash=hash_password(data.password),
        bio=None,
        image=None,
    )
    db.add(user)
    await db.flush()
    logger.info("Registered user %r (id=%d)", user.username, user.id)
    return project_user(user, create_access_token(user.id))


async def login(db: AsyncSession, data: UserLogin) -> dict:
    user = (await db.execute(select(User).where(User.email == data.email))).scalar_one_or_none()
    if user is None:
        raise NotFoundError("user", "not found")
    if not verify_password(data.password, user.password_hash):
        raise ForbiddenError("password", "is invalid")
    return project_user(user, create_access_token(user.id))


async def _get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("user", "not found")
    return user


async def get_current(db: AsyncSession, viewer: Viewer) -> dict:
    return project_user(await _get_user(db, viewer.user_id), viewer.token)


async def update_current(db: AsyncSession, viewer: Viewer, data: UserUpdate) -> dict:
    """
    Apply a partial update to the viewer's account.

    Fields missing from the payload are untouched; ``bio`` and ``image``
    may be cleared with an explicit null.  A new password is re-hashed.
    The token the viewer authenticated with is returned unchanged.
    """
    user = await _get_user(db, viewer.user_id)
    changes = data.model_dump(exclude_unset=True)

    await _ensure_unique(db, changes.get("email"), changes.get("username"), exclude_id=user.id)

    for field in ("email", "username"):
        if changes.get(field) is not None:
            setattr(user, field, changes[field])
    for field in ("bio", "image"):
        if field in changes:
            setattr(user, field, changes[field])
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])

    await db.flush()
    return project_user(user, viewer.token)
