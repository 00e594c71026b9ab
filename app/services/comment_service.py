"""
Comment service: comments on an article.

Any authenticated user may comment on an existing article; only the
comment's author may delete it.  A comment is addressed through its
article's slug, and a comment id that belongs to a different article
is reported as not found.
"""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.errors import ForbiddenError, NotFoundError
from app.models import Comment, User
from app.projection import project_comment
from app.schemas import CommentCreate
from app.services.article_service import find_article_id


def _with_author():
    return joinedload(Comment.author).selectinload(User.followers)


async def list_comments(db: AsyncSession, slug: str, viewer_id: int | None = None) -> list[dict]:
    """Comments on the article at *slug*, oldest first."""
    article_id = await find_article_id(db, slug)
    q = (
        select(Comment)
        .where(Comment.article_id == article_id)
        .options(_with_author())
        .order_by(Comment.created_at, Comment.id)
    )
    result = await db.execute(q)
    return [project_comment(c, viewer_id) for c in result.unique().scalars().all()]


async def add_comment(db: AsyncSession, slug: str, author_id: int, data: CommentCreate) -> dict:
    article_id = await find_article_id(db, slug)

    comment = Comment(body=data.body, author_id=author_id, article_id=article_id)
    db.add(comment)
    await db.flush()

    q = (
        select(Comment)
        .where(Comment.id == comment.id)
        .options(_with_author())
        .execution_options(populate_existing=True)
    )
    comment = (await db.execute(q)).unique().scalar_one()
    return project_comment(comment, author_id)


async def delete_comment(db: AsyncSession, slug: str, comment_id: int, viewer_id: int) -> None:
    article_id = await find_article_id(db, slug)

    q = select(Comment.author_id).where(Comment.id == comment_id, Comment.article_id == article_id)
    author_id = (await db.execute(q)).scalar_one_or_none()
    if author_id is None:
        raise NotFoundError("comment", "not found")
    if author_id != viewer_id:
        raise ForbiddenError("comment", "can only be deleted by its author")

    await db.execute(delete(Comment).where(Comment.id == comment_id))
