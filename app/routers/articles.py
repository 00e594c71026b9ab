from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.auth import Viewer, optional_viewer, require_viewer
from app.database import get_db
from app.dependencies import ListParams
from app.filters import ArticleQuery
from app.schemas import (
    ArticleCreateRequest,
    ArticleEnvelope,
    ArticleListResponse,
    ArticleUpdateRequest,
    CommentCreateRequest,
    CommentEnvelope,
    CommentListResponse,
)
from app.services import article_service, comment_service

router = APIRouter(prefix="/articles", tags=["articles"])

# Listing is public and anonymous: favorited / following are always false here.
@router.get("", response_model=ArticleListResponse)
async def list_articles(
    author: str | None = None,
    tag: str | None = None,
    favorited: str | None = None,
    window: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    query = ArticleQuery.from_params(author, tag, favorited, window.limit, window.offset)
    return await article_service.list_articles(db, query)

@router.get("/feed", response_model=ArticleListResponse)
async def feed(
    window: ListParams = Depends(),
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.feed(db, viewer.user_id, window.limit, window.offset)

@router.get("/{slug}", response_model=ArticleEnvelope)
async def get_article(
    slug: str,
    viewer: Viewer | None = Depends(optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = viewer.user_id if viewer else None
    return {"article": await article_service.get_article(db, slug, viewer_id)}

@router.post("", status_code=201, response_model=ArticleEnvelope)
async def create_article(
    payload: ArticleCreateRequest,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.create_article(db, viewer.user_id, payload.article)}

@router.put("/{slug}", response_model=ArticleEnvelope)
async def update_article(
    slug: str,
    payload: ArticleUpdateRequest,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.update_article(db, slug, viewer.user_id, payload.article)}

@router.delete("/{slug}", status_code=204)
async def delete_article(
    slug: str,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, slug, viewer.user_id)
    return Response(status_code=204)

@router.post("/{slug}/favorite", response_model=ArticleEnvelope)
async def favorite_article(
    slug: str,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.favorite(db, slug, viewer.user_id)}

@router.delete("/{slug}/favorite", response_model=ArticleEnvelope)
async def unfavorite_article(
    slug: str,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"article": await article_service.unfavorite(db, slug, viewer.user_id)}

@router.get("/{slug}/comments", response_model=CommentListResponse)
async def list_comments(
    slug: str,
    viewer: Viewer | None = Depends(optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = viewer.user_id if viewer else None
    return {"comments": await comment_service.list_comments(db, slug, viewer_id)}

@router.post("/{slug}/comments", status_code=201, response_model=CommentEnvelope)
async def add_comment(
    slug: str,
    payload: CommentCreateRequest,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"comment": await comment_service.add_comment(db, slug, viewer.user_id, payload.comment)}

@router.delete("/{slug}/comments/{comment_id}")
async def delete_comment(
    slug: str,
    comment_id: int,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, slug, comment_id, viewer.user_id)
    return {}
