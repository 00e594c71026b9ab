"""
Viewer-relative projection of stored rows into response objects.

Every function here is pure: it reads already-loaded ORM instances and
the (possibly absent) viewer id and returns plain dicts.  Nothing is
written back to the entity, so ``following`` / ``favorited`` can never
go stale between requests.

Callers must eager-load the relations a projection reads:

- profiles and authors: ``User.followers``
- articles: ``Article.author`` (with its followers) and ``Article.favorited_by``
- comments: ``Comment.author`` (with its followers)
"""
from datetime import datetime, timezone

from app.models import Article, Comment, User


def isoformat(value: datetime | None) -> str | None:
    """UTC ISO-8601 with millisecond precision, e.g. ``2024-01-02T03:04:05.678Z``."""
    if value is None:
        return None
    # SQLite hands back naive datetimes; they were written as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _contains(users: list[User], user_id: int | None) -> bool:
    if user_id is None:
        return False
    return any(u.id == user_id for u in users)


def project_user(user: User, token: str) -> dict:
    """The authenticated user's own view, carrying their token."""
    return {
        "email": user.email,
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
        "token": token,
    }


def project_profile(user: User, viewer_id: int | None) -> dict:
    return {
        "username": user.username,
        "bio": user.bio,
        "image": user.image,
        "following": _contains(user.followers, viewer_id),
    }


def project_article(article: Article, viewer_id: int | None) -> dict:
    favorited_by = article.favorited_by
    return {
        "slug": article.slug,
        "title": article.title,
        "description": article.description,
        "body": article.body,
        "tagList": list(article.tag_list or []),
        "createdAt": isoformat(article.created_at),
        "updatedAt": isoformat(article.updated_at),
        "favorited": _contains(favorited_by, viewer_id),
        "favoritesCount": len(favorited_by),
        "author": project_profile(article.author, viewer_id),
    }


def project_comment(comment: Comment, viewer_id: int | None) -> dict:
    return {
        "id": comment.id,
        "createdAt": isoformat(comment.created_at),
        "updatedAt": isoformat(comment.updated_at),
        "body": comment.body,
        "author": project_profile(comment.author, viewer_id),
    }
