"""
Article filter builder.

Listing parameters are turned into a list of typed predicates that are
AND-ed together; pagination and the fixed ordering live alongside them
in ``ArticleQuery`` so the list and the count statement always agree on
which rows match.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from sqlalchemy import and_, asc, desc, func, select
from sqlalchemy.sql import ColumnElement, Select

from app.models import Article, Tag, User, favorites, follows


@dataclass(frozen=True)
class ByAuthor:
    """Articles written by *username* (exact match)."""

    username: str

    def clause(self) -> ColumnElement[bool]:
        return Article.author_id.in_(select(User.id).where(User.username == self.username))


@dataclass(frozen=True)
class ByTag:
    """Articles whose tag list contains *tag* (exact, case-sensitive)."""

    tag: str

    def clause(self) -> ColumnElement[bool]:
        return Article.tags.any(Tag.name == self.tag)


@dataclass(frozen=True)
class ByFavoritedBy:
    """Articles favorited by *username*."""

    username: str

    def clause(self) -> ColumnElement[bool]:
        return Article.id.in_(
            select(favorites.c.article_id)
            .join(User, User.id == favorites.c.user_id)
            .where(User.username == self.username)
        )


@dataclass(frozen=True)
class FollowedBy:
    """Articles whose author is followed by *user_id* (the feed)."""

    user_id: int

    def clause(self) -> ColumnElement[bool]:
        return Article.author_id.in_(
            select(follows.c.followee_id).where(follows.c.follower_id == self.user_id)
        )


Predicate = Union[ByAuthor, ByTag, ByFavoritedBy, FollowedBy]


@dataclass(frozen=True)
class ArticleQuery:
    predicates: tuple[Predicate, ...] = field(default_factory=tuple)
    limit: int | None = None
    offset: int = 0

    @classmethod
    def from_params(
        cls,
        author: str | None = None,
        tag: str | None = None,
        favorited: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> "ArticleQuery":
        predicates: list[Predicate] = []
        if author is not None:
            predicates.append(ByAuthor(author))
        if tag is not None:
            predicates.append(ByTag(tag))
        if favorited is not None:
            predicates.append(ByFavoritedBy(favorited))
        return cls(tuple(predicates), limit or None, offset or 0)

    @classmethod
    def feed(cls, user_id: int, limit: int | None = None, offset: int | None = None) -> "ArticleQuery":
        return cls((FollowedBy(user_id),), limit or None, offset or 0)

    def where(self) -> ColumnElement[bool] | None:
        """All predicates AND-ed together, or None when unfiltered."""
        if not self.predicates:
            return None
        return and_(*(p.clause() for p in self.predicates))

    def statement(self) -> Select:
        """SELECT for one page of matching articles, newest update first."""
        stmt = select(Article)
        where = self.where()
        if where is not None:
            stmt = stmt.where(where)
        stmt = stmt.order_by(desc(Article.updated_at), asc(Article.id))
        if self.offset:
            stmt = stmt.offset(self.offset)
        if self.limit:
            stmt = stmt.limit(self.limit)
        return stmt

    def count_statement(self) -> Select:
        """COUNT of all matching articles, ignoring pagination."""
        stmt = select(func.count()).select_from(Article)
        where = self.where()
        if where is not None:
            stmt = stmt.where(where)
        return stmt
