"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Reads eager-load exactly what the projector needs: the author (with
  followers, for ``author.following``) and ``favorited_by`` (for
  ``favorited`` / ``favoritesCount``).  Nothing per-viewer is stored.
- Reloads after a write use ``populate_existing`` so collections cached
  in the session identity map are replaced by what is in the database.
- Favorites, catalogue tags and article tags go through ``app.relations``
  so repeating a favorite or unfavorite is a no-op and two writers
  introducing the same new tag both succeed.
- Only the author may update or delete an article.
"""
from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from app import relations
from app.cache import cache
from app.errors import ConflictError, ForbiddenError, NotFoundError, UnprocessableEntityError
from app.filters import ArticleQuery
from app.models import Article, Comment, Tag, User, article_tags, favorites
from app.projection import project_article
from app.schemas import ArticleCreate, ArticleUpdate
from app.slugs import next_slug, slugify

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _projection_loads():
    return (
        joinedload(Article.author).selectinload(User.followers),
        selectinload(Article.favorited_by),
    )


async def _load_article(
    db: AsyncSession, slug: str, *extra_loads, refresh: bool = False
) -> Article:
    q = select(Article).where(Article.slug == slug).options(*_projection_loads(), *extra_loads)
    if refresh:
        q = q.execution_options(populate_existing=True)
    article = (await db.execute(q)).unique().scalar_one_or_none()
    if article is None:
        raise NotFoundError("article", "not found")
    return article


async def find_article_id(db: AsyncSession, slug: str) -> int:
    """Return the id of the article at *slug* or raise NotFoundError."""
    article_id = (
        await db.execute(select(Article.id).where(Article.slug == slug))
    ).scalar_one_or_none()
    if article_id is None:
        raise NotFoundError("article", "not found")
    return article_id


async def _ensure_slug_free(db: AsyncSession, slug: str) -> None:
    if not slug:
        raise UnprocessableEntityError("title", "is invalid")
    taken = (await db.execute(select(Article.id).where(Article.slug == slug))).scalar_one_or_none()
    if taken is not None:
        raise ConflictError("slug", "has already been taken")


async def _resolve_tag_ids(db: AsyncSession, tag_names: list[str]) -> list[int]:
    """
    Return the Tag id for each distinct name in *tag_names*, in first-use
    order, cataloguing any name not seen before.
    """
    names = list(dict.fromkeys(tag_names))
    if not names:
        return []
    await relations.insert_missing(
        db, Tag.__table__, [{"name": name} for name in names], index_elements=["name"]
    )
    rows = await db.execute(select(Tag.name, Tag.id).where(Tag.name.in_(names)))
    ids = dict(rows.all())
    return [ids[name] for name in names]


async def _attach_tags(db: AsyncSession, article_id: int, tag_names: list[str]) -> None:
    """Make the article's catalogue tags exactly the distinct *tag_names*."""
    await db.execute(delete(article_tags).where(article_tags.c.article_id == article_id))
    tag_ids = await _resolve_tag_ids(db, tag_names)
    await relations.insert_missing(
        db, article_tags, [{"article_id": article_id, "tag_id": tag_id} for tag_id in tag_ids]
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def list_articles(
    db: AsyncSession, query: ArticleQuery, viewer_id: int | None = None
) -> dict:
    """
    Return one page of articles matching *query* plus the total number
    of matches (before paging).
    """
    total: int = (await db.execute(query.count_statement())).scalar_one()
    result = await db.execute(query.statement().options(*_projection_loads()))
    articles = result.unique().scalars().all()
    return {
        "articles": [project_article(a, viewer_id) for a in articles],
        "articlesCount": total,
    }


async def feed(
    db: AsyncSession, viewer_id: int, limit: int | None = None, offset: int | None = None
) -> dict:
    """Articles by authors *viewer_id* follows, newest update first."""
    return await list_articles(db, ArticleQuery.feed(viewer_id, limit, offset), viewer_id)


async def get_article(db: AsyncSession, slug: str, viewer_id: int | None = None) -> dict:
    return project_article(await _load_article(db, slug), viewer_id)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_article(db: AsyncSession, author_id: int, data: ArticleCreate) -> dict:
    """Create an article owned by *author_id*; its slug comes from the title."""
    slug = slugify(data.title)
    await _ensure_slug_free(db, slug)

    article = Article(
        slug=slug,
        title=data.title,
        description=data.description,
        body=data.body,
        tag_list=list(data.tagList),
        author_id=author_id,
    )
    db.add(article)
    await db.flush()
    if data.tagList:
        await _attach_tags(db, article.id, data.tagList)
    logger.info("Article %r created by user %d", slug, author_id)

    await cache.invalidate_tags()
    return project_article(await _load_article(db, slug, refresh=True), author_id)


async def update_article(
    db: AsyncSession, slug: str, viewer_id: int, data: ArticleUpdate
) -> dict:
    """
    Apply the fields present in *data* to the article at *slug*.

    A changed title also changes the slug; the response carries the new
    one.  Absent (or null) fields are left as they are.
    """
    article = await _load_article(db, slug, refresh=True)
    if article.author_id != viewer_id:
        raise ForbiddenError("article", "can only be changed by its author")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    new_slug = next_slug(article.title, article.slug, changes.get("title"))
    if new_slug != article.slug:
        await _ensure_slug_free(db, new_slug)
        article.slug = new_slug

    for field in ("title", "description", "body"):
        if field in changes:
            setattr(article, field, changes[field])

    tag_names: list[str] | None = changes.get("tagList")
    if tag_names is not None:
        article.tag_list = list(tag_names)
        await _attach_tags(db, article.id, tag_names)

    await db.flush()
    if tag_names is not None:
        await cache.invalidate_tags()
    return project_article(await _load_article(db, article.slug, refresh=True), viewer_id)


async def delete_article(db: AsyncSession, slug: str, viewer_id: int) -> None:
    """Delete the article at *slug* together with its comments and favorites."""
    row = (
        await db.execute(select(Article.id, Article.author_id).where(Article.slug == slug))
    ).one_or_none()
    if row is None:
        raise NotFoundError("article", "not found")
    if row.author_id != viewer_id:
        raise ForbiddenError("article", "can only be deleted by its author")

    await db.execute(delete(Comment).where(Comment.article_id == row.id))
    await db.execute(delete(favorites).where(favorites.c.article_id == row.id))
    await db.execute(delete(article_tags).where(article_tags.c.article_id == row.id))
    await db.execute(delete(Article).where(Article.id == row.id))
    logger.info("Article %r deleted by user %d", slug, viewer_id)


async def favorite(db: AsyncSession, slug: str, viewer_id: int) -> dict:
    article_id = await find_article_id(db, slug)
    await relations.connect(db, favorites, article_id=article_id, user_id=viewer_id)
    return project_article(await _load_article(db, slug, refresh=True), viewer_id)


async def unfavorite(db: AsyncSession, slug: str, viewer_id: int) -> dict:
    article_id = await find_article_id(db, slug)
    await relations.disconnect(db, favorites, article_id=article_id, user_id=viewer_id)
    return project_article(await _load_article(db, slug, refresh=True), viewer_id)
