from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.auth import Viewer, optional_viewer, require_viewer
from app.database import get_db
from app.schemas import ProfileEnvelope
from app.services import profile_service

router = APIRouter(prefix="/profiles", tags=["profiles"])

@router.get("/{username}", response_model=ProfileEnvelope)
async def get_profile(
    username: str,
    viewer: Viewer | None = Depends(optional_viewer),
    db: AsyncSession = Depends(get_db),
):
    viewer_id = viewer.user_id if viewer else None
    return {"profile": await profile_service.get_profile(db, username, viewer_id)}

@router.post("/{username}/follow", response_model=ProfileEnvelope)
async def follow(
    username: str,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await profile_service.follow(db, username, viewer.user_id)}

@router.delete("/{username}/follow", response_model=ProfileEnvelope)
async def unfollow(
    username: str,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"profile": await profile_service.unfollow(db, username, viewer.user_id)}
