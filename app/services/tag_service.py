"""
Tag service: the catalogue of every tag ever attached to an article.

Tags are inserted by the article service and never removed, so the
catalogue is the union of all article tag lists.  Reads go through the
cache-aside layer; the article service drops the entry on writes.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import TAGS_KEY, cache
from app.config import settings
from app.models import Tag


async def list_tags(db: AsyncSession) -> list[str]:
    """Return tag names in the order they were first used."""
    cached = await cache.get(TAGS_KEY)
    if cached is not None:
        return cached

    result = await db.execute(select(Tag.name).order_by(Tag.id))
    tags = list(result.scalars().all())
    await cache.set(TAGS_KEY, tags, ttl=settings.CACHE_TTL_TAGS)
    return tags
