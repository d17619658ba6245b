import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from homebase.api.deps import SessionContext, get_session_context
from homebase.core.db import get_session
from homebase.core.errors import Conflict, Unauthenticated
from homebase.core.security import create_access_token, hash_password, verify_password
from homebase.models.user import User
from homebase.schemas.auth import (
    AuthResponse,
    LoginRequest,
    SessionResponse,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from homebase.services.users import find_user_by_login, is_email_taken, is_username_taken

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        household_id=user.household_id,
        profile_picture_id=user.profile_picture_id,
    )


def issue_token(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.username, user.household_id)
    )


async def authenticate_user(session: AsyncSession, login: str, password: str) -> User:
    user = await find_user_by_login(session, login)
    if not user or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid username or password")
    return user


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    session: AsyncSession = Depends(get_session),
) -> AuthResponse:
    username = payload.username.strip()
    email = str(payload.email).lower().strip()
    if await is_username_taken(session, username):
        raise Conflict("Username already exists")
    if await is_email_taken(session, email):
        raise Conflict("Email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(payload.password),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("Registered user %s", user.id)

    return AuthResponse(token=issue_token(user), user=to_user_response(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> AuthResponse:
    user = await authenticate_user(session, payload.username, payload.password)
    return AuthResponse(token=issue_token(user), user=to_user_response(user))


@router.post("/token", response_model=TokenResponse)
async def token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session),
) -> TokenResponse:
    # The form's username field accepts either a username or an email.
    user = await authenticate_user(session, form_data.username, form_data.password)
    return issue_token(user)


@router.get("/session", response_model=SessionResponse)
async def read_session(
    ctx: SessionContext = Depends(get_session_context),
) -> SessionResponse:
    return SessionResponse(
        id=ctx.user_id,
        username=ctx.username,
        household_id=ctx.household_id,
    )
