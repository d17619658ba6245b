import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from homebase.api.auth import issue_token
from homebase.api.deps import (
    HouseholdContext,
    SessionContext,
    get_session_context,
    require_household,
)
from homebase.core.config import get_settings
from homebase.core.db import get_session
from homebase.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from homebase.models.chore import Chore
from homebase.models.household import Household
from homebase.models.profile_picture import ProfilePicture
from homebase.models.user import User
from homebase.schemas.common import MessageResponse
from homebase.schemas.household import (
    HouseholdActionResponse,
    HouseholdCreateRequest,
    HouseholdJoinRequest,
    HouseholdMember,
    HouseholdRenameRequest,
    HouseholdResponse,
    JoinCodeResponse,
    MemberChoreCount,
    MemberProfile,
    ProfilePictureResponse,
)
from homebase.services.households import (
    create_household,
    delete_household,
    get_household,
    get_household_by_join_code,
    get_owned_household,
    regenerate_join_code,
)
from homebase.services.profile_pictures import default_avatar
from homebase.services.realtime import HouseholdBroadcaster, RefreshTopic, get_broadcaster
from homebase.services.users import (
    drop_event_attendance,
    get_user,
    list_household_members,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/household", tags=["household"])

MIN_HOUSEHOLD_NAME_LENGTH = 3


def _to_member(user: User) -> HouseholdMember:
    return HouseholdMember(id=user.id, username=user.username, email=user.email)


def to_profile_picture_response(picture: ProfilePicture) -> ProfilePictureResponse:
    return ProfilePictureResponse(
        id=picture.id,
        name=picture.name,
        image_url=picture.image_url,
        category=picture.category,
    )


async def _to_household_response(
    session: AsyncSession, household: Household
) -> HouseholdResponse:
    members = [_to_member(user) for user in await list_household_members(session, household.id)]
    owner = next((member for member in members if member.id == household.owner_id), None)
    return HouseholdResponse(
        id=household.id,
        name=household.name,
        join_code=household.join_code,
        created_at=household.created_at,
        owner=owner,
        users=members,
    )


async def _load_household(session: AsyncSession, ctx: HouseholdContext) -> Household:
    household = await get_household(session, ctx.household_id)
    if not household:
        raise NotFound("Household", ctx.household_id)
    return household


async def _load_owned_household(
    session: AsyncSession, ctx: HouseholdContext, action: str
) -> Household:
    household = await _load_household(session, ctx)
    if household.owner_id != ctx.user_id:
        raise Forbidden(f"Only the household owner can {action}.")
    return household


def _clean_household_name(raw_name: str) -> str:
    name = raw_name.strip()
    if len(name) < MIN_HOUSEHOLD_NAME_LENGTH:
        raise ValidationFailed(
            f"Household name must be at least {MIN_HOUSEHOLD_NAME_LENGTH} characters long"
        )
    return name


@router.post(
    "/create",
    response_model=HouseholdActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create(
    payload: HouseholdCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
) -> HouseholdActionResponse:
    name = _clean_household_name(payload.household_name)
    if await get_owned_household(session, ctx.user_id):
        raise Conflict("You already own a household")
    if ctx.household_id is not None:
        raise Conflict("You are already a member of a household")

    household = await create_household(
        session,
        owner=ctx.user,
        name=name,
        join_code_length=settings.join_code_length,
    )
    return HouseholdActionResponse(
        message="Household created successfully",
        household=await _to_household_response(session, household),
        token=issue_token(ctx.user),
    )


@router.post("/join", response_model=HouseholdActionResponse)
async def join(
    payload: HouseholdJoinRequest,
    ctx: SessionContext = Depends(get_session_context),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> HouseholdActionResponse:
    join_code = payload.join_code.strip()
    if not join_code:
        raise ValidationFailed("Join code is required")
    if ctx.household_id is not None:
        raise Conflict("You are already a member of a household")
    if await get_owned_household(session, ctx.user_id):
        raise Conflict("You already own a household")

    household = await get_household_by_join_code(session, join_code)
    if not household:
        raise NotFound("Household")

    user = ctx.user
    user.household_id = household.id
    session.add(user)
    await session.commit()
    logger.info("User %s joined household %s", user.id, household.id)
    await broadcaster.publish(household.id, RefreshTopic.HOUSEHOLD)

    return HouseholdActionResponse(
        message="Joined household successfully",
        household=await _to_household_response(session, household),
        token=issue_token(user),
    )


@router.get("", response_model=HouseholdResponse)
async def read_household(
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> HouseholdResponse:
    household = await _load_household(session, ctx)
    return await _to_household_response(session, household)


@router.put("", response_model=HouseholdResponse)
async def rename_household(
    payload: HouseholdRenameRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> HouseholdResponse:
    household = await _load_owned_household(session, ctx, "rename the household")
    household.name = _clean_household_name(payload.name)
    session.add(household)
    await session.commit()
    await session.refresh(household)
    await broadcaster.publish(household.id, RefreshTopic.HOUSEHOLD)
    return await _to_household_response(session, household)


@router.post("/join-code", response_model=JoinCodeResponse)
async def rotate_join_code(
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> JoinCodeResponse:
    household = await _load_owned_household(session, ctx, "change the join code")
    household = await regenerate_join_code(session, household, settings.join_code_length)
    return JoinCodeResponse(join_code=household.join_code)


@router.delete("", response_model=MessageResponse)
async def remove_household(
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    household = await _load_owned_household(session, ctx, "delete the household")
    household_id = household.id
    await delete_household(session, household)
    await session.commit()
    await broadcaster.publish(household_id, RefreshTopic.HOUSEHOLD)
    return MessageResponse(message="Household deleted successfully")


@router.get("/users", response_model=list[HouseholdMember])
async def list_users(
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> list[HouseholdMember]:
    return [_to_member(user) for user in await list_household_members(session, ctx.household_id)]


@router.get("/users/profiles", response_model=list[MemberProfile])
async def list_user_profiles(
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> list[MemberProfile]:
    members = await list_household_members(session, ctx.household_id)
    picture_ids = {user.profile_picture_id for user in members if user.profile_picture_id}
    pictures: dict[int, ProfilePicture] = {}
    if picture_ids:
        result = await session.execute(
            select(ProfilePicture).where(ProfilePicture.id.in_(list(picture_ids)))
        )
        pictures = {picture.id: picture for picture in result.scalars().all()}

    fallback = to_profile_picture_response(default_avatar())
    return [
        MemberProfile(
            id=user.id,
            username=user.username,
            email=user.email,
            profile_picture=(
                to_profile_picture_response(pictures[user.profile_picture_id])
                if user.profile_picture_id in pictures
                else fallback
            ),
        )
        for user in members
    ]


@router.get("/users/count-chores-done", response_model=list[MemberChoreCount])
async def count_chores_done(
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> list[MemberChoreCount]:
    members = await list_household_members(session, ctx.household_id)
    result = await session.execute(
        select(Chore.done_by_id, func.count())
        .where(
            Chore.household_id == ctx.household_id,
            Chore.done.is_(True),
            Chore.done_by_id.is_not(None),
        )
        .group_by(Chore.done_by_id)
    )
    counts = {user_id: int(total) for user_id, total in result.all()}
    return [
        MemberChoreCount(
            id=user.id,
            username=user.username,
            email=user.email,
            chores_done=counts.get(user.id, 0),
        )
        for user in members
    ]


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def remove_member(
    user_id: int,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    household = await _load_household(session, ctx)
    if user_id == ctx.user_id:
        if household.owner_id == ctx.user_id:
            raise ValidationFailed(
                "The owner cannot leave the household. Delete it instead."
            )
        target = ctx.user
        message = "You left the household"
    else:
        if household.owner_id != ctx.user_id:
            raise Forbidden("Only the household owner can remove members.")
        target = await get_user(session, user_id)
        if not target:
            raise NotFound("User", user_id)
        if target.household_id != ctx.household_id:
            raise Forbidden("This user is not a member of your household.")
        message = "Member removed from the household"

    await drop_event_attendance(session, user_id=target.id, household_id=household.id)
    target.household_id = None
    session.add(target)
    await session.commit()
    logger.info("User %s removed from household %s", target.id, household.id)
    await broadcaster.publish(household.id, RefreshTopic.HOUSEHOLD)
    return MessageResponse(message=message)
