"""Auth API endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from modqueue.config import settings
from modqueue.dependencies import client_ip, get_current_user, get_db, get_session_store
from modqueue.models.user import User
from modqueue.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserInfo
from modqueue.schemas.common import APIResponse
from modqueue.services import preload_service
from modqueue.services.auth_service import authenticate_user, create_access_token, register_user
from modqueue.services.preload_service import ActorContext
from modqueue.services.session_store import RedisSessionStore

router = APIRouter()


def _token_response(user: User) -> dict:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role.value),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    ).model_dump()


@router.post("/login", response_model=APIResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, body.name, body.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return APIResponse(status="success", data=_token_response(user))


@router.post("/register", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    session: RedisSessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
):
    user = await register_user(db, body.name, body.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    # Drafts saved anonymously in this session now belong to the new account
    actor = ActorContext(user=user, ip=client_ip(request), session=session)
    claimed = await preload_service.on_account_created(db, actor)

    if session.modified:
        response.set_cookie(settings.SESSION_COOKIE_NAME, session.session_id, max_age=settings.SESSION_TTL_SECONDS)

    return APIResponse(
        status="success",
        data={"user": UserInfo.model_validate(user).model_dump(), "claimed_drafts": claimed, **_token_response(user)},
    )


@router.get("/me", response_model=APIResponse)
async def me(current_user: User = Depends(get_current_user)):
    return APIResponse(
        status="success",
        data=UserInfo.model_validate(current_user).model_dump(),
    )
