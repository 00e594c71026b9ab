"""
Unit tests for the pure helpers: slugs, the article filter builder,
viewer-relative projection, token handling and validation-error mapping.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest

from app.auth import _extract_token, create_access_token, decode_access_token
from app.config import settings
from app.errors import UnauthorizedError, first_validation_error
from app.filters import ArticleQuery, ByAuthor, ByFavoritedBy, ByTag, FollowedBy
from app.projection import isoformat, project_article, project_profile
from app.slugs import next_slug, slugify


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "title, slug",
    [
        ("How to eat a fish", "How-to-eat-a-fish"),
        ("  Padded   title ", "Padded-title"),
        ("What's new?", "Whats-new"),
        ("already-hyphenated", "already-hyphenated"),
    ],
)
def test_slugify(title, slug):
    assert slugify(title) == slug


def test_next_slug_keeps_slug_without_title_change():
    assert next_slug("Fish", "Fish", None) == "Fish"
    assert next_slug("Fish", "Fish", "Fish") == "Fish"
    assert next_slug("Fish", "Fish", "Dragons are real") == "Dragons-are-real"


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def test_from_params_builds_predicates_in_order():
    query = ArticleQuery.from_params(author="germione", tag="fish", favorited="naboo")
    assert query.predicates == (ByAuthor("germione"), ByTag("fish"), ByFavoritedBy("naboo"))
    assert query.limit is None
    assert query.offset == 0


def test_from_params_without_filters():
    query = ArticleQuery.from_params(limit=0, offset=None)
    assert query.predicates == ()
    assert query.where() is None
    assert query.limit is None


def test_feed_query_ignores_listing_filters():
    query = ArticleQuery.feed(7, limit=5, offset=10)
    assert query.predicates == (FollowedBy(7),)
    assert (query.limit, query.offset) == (5, 10)


def test_statement_orders_by_update_then_id():
    sql = str(ArticleQuery.from_params(tag="fish", limit=2, offset=1).statement())
    assert "ORDER BY articles.updated_at DESC, articles.id ASC" in sql
    assert "LIMIT" in sql


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

def _user(user_id, username, followers=()):
    return SimpleNamespace(id=user_id, username=username, bio=None, image=None, followers=list(followers))


def test_isoformat_millisecond_utc():
    value = datetime(2024, 1, 2, 3, 4, 5, 678901)
    assert isoformat(value) == "2024-01-02T03:04:05.678Z"
    aware = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
    assert isoformat(aware) == "2024-01-02T03:04:05.000Z"


def test_project_profile_following_is_viewer_relative():
    viewer = _user(1, "germione")
    naboo = _user(2, "naboo", followers=[viewer])
    assert project_profile(naboo, 1)["following"] is True
    assert project_profile(naboo, 3)["following"] is False
    assert project_profile(naboo, None)["following"] is False


def test_project_article_favorites():
    germione = _user(1, "germione")
    naboo = _user(2, "naboo")
    now = datetime(2024, 1, 1)
    article = SimpleNamespace(
        slug="Fish", title="Fish", description="d", body="b", tag_list=["fish"],
        created_at=now, updated_at=now, author=germione, favorited_by=[naboo],
    )
    mine = project_article(article, 2)
    assert mine["favorited"] is True
    assert mine["favoritesCount"] == 1
    assert mine["author"]["username"] == "germione"

    anon = project_article(article, None)
    assert anon["favorited"] is False
    assert anon["favoritesCount"] == 1


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def test_token_round_trip():
    assert decode_access_token(create_access_token(42)) == 42


def test_expired_token_rejected():
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    token = jwt.encode(
        {"sub": "1", "iat": past - timedelta(hours=1), "exp": past},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(UnauthorizedError) as info:
        decode_access_token(token)
    assert info.value.message == "has expired"


def test_token_signed_with_other_secret_rejected():
    token = jwt.encode({"sub": "1"}, "not-the-secret", algorithm="HS256")
    with pytest.raises(UnauthorizedError):
        decode_access_token(token)


@pytest.mark.parametrize("header", [None, "", "Token", "Token   ", "Basic abc"])
def test_extract_token_rejects_malformed_headers(header):
    with pytest.raises(UnauthorizedError):
        _extract_token(header)


def test_extract_token_schemes():
    assert _extract_token("Token abc") == "abc"
    assert _extract_token("bearer abc") == "abc"


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

def test_first_validation_error_reports_first_field():
    err = first_validation_error([
        {"type": "missing", "loc": ("body", "article", "title"), "input": {}},
        {"type": "missing", "loc": ("body", "article", "body"), "input": {}},
    ])
    assert (err.field, err.message) == ("title", "can't be blank")


def test_first_validation_error_null_string_is_blank():
    err = first_validation_error([{"type": "string_type", "loc": ("body", "user", "email"), "input": None}])
    assert err.message == "can't be blank"
    err = first_validation_error([{"type": "string_type", "loc": ("body", "user", "email"), "input": 5}])
    assert err.message == "is invalid"


def test_first_validation_error_skips_list_indexes():
    err = first_validation_error([
        {"type": "string_type", "loc": ("body", "article", "tagList", 0), "input": 1},
    ])
    assert (err.field, err.message) == ("tagList", "is invalid")
