from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from technews.config import settings
from technews.database import get_db
from technews.dependencies import SessionContext, get_session_context
from technews.errors import USER_NOT_FOUND, NotFound
from technews.schemas import (
    DeleteResponse,
    LoginRequest,
    LoginResponse,
    UserCreate,
    UserDetail,
    UserResponse,
    UserUpdate,
)
from technews.services import auth_service, user_service
from technews.services.auth_service import LOGIN_MESSAGE

router = APIRouter(prefix="/api/users", tags=["users"])

# Ids outside the INTEGER column range can name no row; drivers reject them.
MAX_USER_ID = 2**31 - 1


def _require_valid_id(user_id: int) -> None:
    if not 1 <= user_id <= MAX_USER_ID:
        raise NotFound(USER_NOT_FOUND)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_TTL,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )


@router.get("", response_model=list[UserResponse])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await user_service.get_users(db)

@router.get("/{user_id}", response_model=UserDetail)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    _require_valid_id(user_id)
    user = await user_service.get_user(db, user_id)
    if not user:
        raise NotFound(USER_NOT_FOUND)
    return user

@router.post("", response_model=UserResponse)
async def create_user(
    data: UserCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current: SessionContext = Depends(get_session_context),
):
    user = await auth_service.register(db, data)
    try:
        token = await auth_service.open_session(current, user)
    except Exception:
        await auth_service.discard_registration(db, user)
        raise
    _set_session_cookie(response, token)
    return user

@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current: SessionContext = Depends(get_session_context),
):
    user = await auth_service.authenticate(db, data.email, data.password)
    token = await auth_service.open_session(current, user)
    _set_session_cookie(response, token)
    return LoginResponse(user=UserResponse.model_validate(user), message=LOGIN_MESSAGE)

@router.post("/logout", status_code=204)
async def logout(current: SessionContext = Depends(get_session_context)):
    if not await auth_service.close_session(current):
        return Response(status_code=404)
    response = Response(status_code=204)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, data: UserUpdate, db: AsyncSession = Depends(get_db)):
    _require_valid_id(user_id)
    user = await user_service.update_user(db, user_id, data)
    if not user:
        raise NotFound(USER_NOT_FOUND)
    return user

@router.delete("/{user_id}", response_model=DeleteResponse)
async def delete_user(user_id: int, db: AsyncSession = Depends(get_db)):
    _require_valid_id(user_id)
    deleted = await user_service.delete_user(db, user_id)
    if not deleted:
        raise NotFound(USER_NOT_FOUND)
    return DeleteResponse(deleted=deleted)
