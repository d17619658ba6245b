import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from homebase.api.deps import (
    HouseholdContext,
    Pagination,
    get_household_row,
    get_pagination,
    parse_recurrence,
    require_household,
)
from homebase.core.config import get_settings
from homebase.core.db import get_session
from homebase.core.errors import ValidationFailed
from homebase.models.chore import Chore
from homebase.schemas.chore import (
    ChoreActionResponse,
    ChoreCreateRequest,
    ChoreDoneRequest,
    ChoreListResponse,
    ChoreResponse,
    ChoreUpdateRequest,
    ChoreWithChildrenResponse,
)
from homebase.schemas.common import MessageResponse, UserSummary
from homebase.services.realtime import HouseholdBroadcaster, RefreshTopic, get_broadcaster
from homebase.services.recurrence import occurrence_dates
from homebase.services.users import resolve_user_summaries

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/chore", tags=["chores"])


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_chore_response(chore: Chore, users: dict[int, UserSummary]) -> ChoreResponse:
    return ChoreResponse(
        id=chore.id,
        household_id=chore.household_id,
        name=chore.name,
        description=chore.description,
        due_date=chore.due_date,
        priority=chore.priority,
        done=chore.done,
        done_by=users.get(chore.done_by_id) if chore.done_by_id else None,
        created_by=users.get(chore.created_by_id) if chore.created_by_id else None,
        parent_chore_id=chore.parent_id,
        cycle=chore.cycle,
        repeat_count=chore.repeat_count,
        created_at=chore.created_at,
        updated_at=chore.updated_at,
    )


async def to_chore_responses(session: AsyncSession, chores: list[Chore]) -> list[ChoreResponse]:
    users = await resolve_user_summaries(
        session,
        [chore.created_by_id for chore in chores] + [chore.done_by_id for chore in chores],
    )
    return [to_chore_response(chore, users) for chore in chores]


def _clean_name(raw_name: str) -> str:
    name = raw_name.strip()
    if not name:
        raise ValidationFailed("Chore name is required")
    return name


@router.get("", response_model=ChoreListResponse)
async def list_chores(
    done: bool | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> ChoreListResponse:
    filters = [Chore.household_id == ctx.household_id]
    if done is not None:
        filters.append(Chore.done.is_(done))

    count_result = await session.execute(
        select(func.count()).select_from(Chore).where(*filters)
    )
    total = int(count_result.scalar_one() or 0)

    stmt = (
        select(Chore)
        .where(*filters)
        .order_by(Chore.priority.asc(), Chore.due_date.asc(), Chore.id.asc())
    )
    result = await session.execute(pagination.apply(stmt))
    chores = list(result.scalars().all())
    return ChoreListResponse(chores=await to_chore_responses(session, chores), count=total)


@router.post(
    "",
    response_model=ChoreWithChildrenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_chore(
    payload: ChoreCreateRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> ChoreWithChildrenResponse:
    recurrence = parse_recurrence(payload.cycle, payload.repeat_count)
    name = _clean_name(payload.name)

    parent = Chore(
        household_id=ctx.household_id,
        name=name,
        description=payload.description.strip(),
        due_date=payload.due_date,
        priority=payload.priority,
        created_by_id=ctx.user_id,
        cycle=recurrence.to_cycle_code(),
        repeat_count=payload.repeat_count,
    )
    session.add(parent)
    # Parent id is needed for the children; everything lands in one commit.
    await session.flush()

    children = [
        Chore(
            household_id=ctx.household_id,
            name=name,
            description=parent.description,
            due_date=due_date,
            priority=parent.priority,
            created_by_id=ctx.user_id,
            parent_id=parent.id,
            cycle=parent.cycle,
            repeat_count=0,
        )
        for due_date in occurrence_dates(
            parent.due_date,
            recurrence,
            payload.repeat_count,
            max_count=settings.max_repeat_count,
        )
    ]
    session.add_all(children)
    await session.commit()
    logger.info(
        "Created chore %s with %d occurrences in household %s",
        parent.id,
        len(children),
        ctx.household_id,
    )
    await broadcaster.publish(ctx.household_id, RefreshTopic.CHORES)

    users = await resolve_user_summaries(session, [ctx.user_id])
    response = to_chore_response(parent, users)
    return ChoreWithChildrenResponse(
        **response.model_dump(),
        child_chores=[to_chore_response(child, users) for child in children],
    )


@router.put("/done", response_model=ChoreActionResponse)
async def mark_chore_done(
    payload: ChoreDoneRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> ChoreActionResponse:
    chore = await get_household_row(session, Chore, payload.chore_id, ctx, "Chore")
    chore.done = payload.done
    chore.done_by_id = ctx.user_id if payload.done else None
    chore.updated_at = _current_time()
    session.add(chore)
    await session.commit()
    await session.refresh(chore)
    await broadcaster.publish(ctx.household_id, RefreshTopic.CHORES)

    (response,) = await to_chore_responses(session, [chore])
    return ChoreActionResponse(
        message="Chore marked as done" if payload.done else "Chore marked as not done",
        chore=response,
    )


@router.put("/{chore_id}", response_model=ChoreResponse)
async def update_chore(
    chore_id: int,
    payload: ChoreUpdateRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> ChoreResponse:
    chore = await get_household_row(session, Chore, chore_id, ctx, "Chore")
    updates = payload.model_dump(exclude_unset=True)

    if "name" in updates and updates["name"] is not None:
        chore.name = _clean_name(updates["name"])
    if "description" in updates and updates["description"] is not None:
        chore.description = updates["description"].strip()
    if "due_date" in updates and updates["due_date"] is not None:
        chore.due_date = updates["due_date"]
    if "priority" in updates and updates["priority"] is not None:
        chore.priority = updates["priority"]

    chore.updated_at = _current_time()
    session.add(chore)
    await session.commit()
    await session.refresh(chore)
    await broadcaster.publish(ctx.household_id, RefreshTopic.CHORES)

    (response,) = await to_chore_responses(session, [chore])
    return response


@router.delete("/{chore_id}", response_model=MessageResponse)
async def delete_chore(
    chore_id: int,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    chore = await get_household_row(session, Chore, chore_id, ctx, "Chore")
    await session.execute(delete(Chore).where(Chore.parent_id == chore.id))
    await session.delete(chore)
    await session.commit()
    await broadcaster.publish(ctx.household_id, RefreshTopic.CHORES)
    return MessageResponse(message="Chore deleted successfully")
