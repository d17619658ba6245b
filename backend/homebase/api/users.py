import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from homebase.api.auth import to_user_response
from homebase.api.deps import SessionContext, get_session_context
from homebase.api.households import to_profile_picture_response
from homebase.core.db import get_session
from homebase.core.errors import Conflict, NotFound
from homebase.core.security import hash_password
from homebase.models.profile_picture import DEFAULT_AVATAR_ID
from homebase.schemas.auth import UserResponse
from homebase.schemas.common import MessageResponse
from homebase.schemas.user import (
    CurrentProfilePictureResponse,
    ProfilePictureListResponse,
    ProfilePictureUpdateRequest,
    UserUpdateRequest,
)
from homebase.services.households import delete_household, get_owned_household
from homebase.services.profile_pictures import (
    default_avatar,
    get_profile_picture,
    list_profile_pictures,
)
from homebase.services.realtime import HouseholdBroadcaster, RefreshTopic, get_broadcaster
from homebase.services.users import clear_user_references, is_email_taken, is_username_taken

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.get("", response_model=UserResponse)
async def read_user(ctx: SessionContext = Depends(get_session_context)) -> UserResponse:
    return to_user_response(ctx.user)


@router.put("", response_model=UserResponse)
async def update_user(
    payload: UserUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> UserResponse:
    user = ctx.user
    if payload.username is not None:
        username = payload.username.strip()
        if await is_username_taken(session, username, exclude_user_id=user.id):
            raise Conflict("Username already exists")
        user.username = username
    if payload.email is not None:
        email = str(payload.email).lower().strip()
        if await is_email_taken(session, email, exclude_user_id=user.id):
            raise Conflict("Email already exists")
        user.email = email
    if payload.password is not None:
        user.password_hash = hash_password(payload.password)

    session.add(user)
    await session.commit()
    await session.refresh(user)
    await broadcaster.publish(user.household_id, RefreshTopic.HOUSEHOLD)
    return to_user_response(user)


@router.delete("", response_model=MessageResponse)
async def delete_user(
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    user = ctx.user
    user_id = user.id
    household_id = user.household_id

    owned = await get_owned_household(session, user_id)
    if owned:
        await delete_household(session, owned)
    await clear_user_references(session, user_id)
    await session.delete(user)
    await session.commit()
    logger.info("Deleted user %s", user_id)

    await broadcaster.publish(household_id, RefreshTopic.HOUSEHOLD)
    return MessageResponse(message="User deleted successfully")


@router.get("/profilepicture", response_model=CurrentProfilePictureResponse)
async def read_profile_picture(
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> CurrentProfilePictureResponse:
    picture = await get_profile_picture(session, ctx.user.profile_picture_id)
    return CurrentProfilePictureResponse(
        profile_picture=to_profile_picture_response(picture) if picture else None
    )


@router.put("/profilepicture", response_model=CurrentProfilePictureResponse)
async def update_profile_picture(
    payload: ProfilePictureUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> CurrentProfilePictureResponse:
    user = ctx.user
    if payload.profile_picture_id == DEFAULT_AVATAR_ID:
        user.profile_picture_id = None
        picture = default_avatar()
    else:
        picture = await get_profile_picture(session, payload.profile_picture_id)
        if not picture:
            raise NotFound("Profile picture", payload.profile_picture_id)
        user.profile_picture_id = picture.id

    session.add(user)
    await session.commit()
    await broadcaster.publish(user.household_id, RefreshTopic.HOUSEHOLD)
    return CurrentProfilePictureResponse(profile_picture=to_profile_picture_response(picture))


@router.get("/profilepictures", response_model=ProfilePictureListResponse)
async def read_profile_pictures(
    _: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> ProfilePictureListResponse:
    pictures = await list_profile_pictures(session)
    return ProfilePictureListResponse(
        profile_pictures=[to_profile_picture_response(picture) for picture in pictures]
    )
