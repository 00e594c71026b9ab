"""
Profile service: public user profiles and the follow relation.

``following`` on a profile is always relative to the viewer and is
false for anonymous viewers.  Following is idempotent: a second follow
of the same user leaves exactly one relation row.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app import relations
from app.errors import ForbiddenError, NotFoundError
from app.models import User, follows
from app.projection import project_profile

logger = logging.getLogger(__name__)


async def _load_profile(db: AsyncSession, username: str, refresh: bool = False) -> User:
    q = select(User).where(User.username == username).options(selectinload(User.followers))
    if refresh:
        q = q.execution_options(populate_existing=True)
    user = (await db.execute(q)).scalar_one_or_none()
    if user is None:
        raise NotFoundError("profile", "not found")
    return user


async def get_profile(db: AsyncSession, username: str, viewer_id: int | None = None) -> dict:
    return project_profile(await _load_profile(db, username), viewer_id)


async def follow(db: AsyncSession, username: str, viewer_id: int) -> dict:
    target = await _load_profile(db, username)
    if target.id == viewer_id:
        raise ForbiddenError("profile", "cannot follow yourself")

    await relations.connect(db, follows, follower_id=viewer_id, followee_id=target.id)
    logger.info("User %d follows %r", viewer_id, username)
    return project_profile(await _load_profile(db, username, refresh=True), viewer_id)


async def unfollow(db: AsyncSession, username: str, viewer_id: int) -> dict:
    target = await _load_profile(db, username)
    if target.id == viewer_id:
        raise ForbiddenError("profile", "cannot unfollow yourself")

    await relations.disconnect(db, follows, follower_id=viewer_id, followee_id=target.id)
    logger.info("User %d unfollows %r", viewer_id, username)
    return project_profile(await _load_profile(db, username, refresh=True), viewer_id)
