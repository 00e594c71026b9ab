from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.auth import Viewer, require_viewer
from app.database import get_db
from app.schemas import UserEnvelope, UserLoginRequest, UserRegisterRequest, UserUpdateRequest
from app.services import user_service

router = APIRouter(tags=["users"])

@router.post("/users", response_model=UserEnvelope)
async def register(payload: UserRegisterRequest, db: AsyncSession = Depends(get_db)):
    return {"user": await user_service.register(db, payload.user)}

@router.post("/users/login", response_model=UserEnvelope)
async def login(payload: UserLoginRequest, db: AsyncSession = Depends(get_db)):
    return {"user": await user_service.login(db, payload.user)}

@router.get("/user", response_model=UserEnvelope)
async def get_current_user(
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"user": await user_service.get_current(db, viewer)}

@router.put("/user", response_model=UserEnvelope)
async def update_current_user(
    payload: UserUpdateRequest,
    viewer: Viewer = Depends(require_viewer),
    db: AsyncSession = Depends(get_db),
):
    return {"user": await user_service.update_current(db, viewer, payload.user)}
