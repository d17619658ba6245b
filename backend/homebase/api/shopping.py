from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from homebase.api.deps import (
    HouseholdContext,
    Pagination,
    get_household_row,
    get_pagination,
    require_household,
)
from homebase.core.db import get_session
from homebase.core.errors import Forbidden, ValidationFailed
from homebase.models.shopping_item import ShoppingItem
from homebase.schemas.common import MessageResponse, UserSummary
from homebase.schemas.shopping import (
    ShoppingCountResponse,
    ShoppingItemBoughtRequest,
    ShoppingItemCreateRequest,
    ShoppingItemResponse,
    ShoppingListResponse,
)
from homebase.services.realtime import HouseholdBroadcaster, RefreshTopic, get_broadcaster
from homebase.services.users import resolve_user_summaries

router = APIRouter(prefix="/shoppingList", tags=["shopping"])


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_shopping_item_response(
    item: ShoppingItem, users: dict[int, UserSummary]
) -> ShoppingItemResponse:
    return ShoppingItemResponse(
        id=item.id,
        household_id=item.household_id,
        name=item.name,
        cost=float(item.cost),
        created_by=users.get(item.created_by_id) if item.created_by_id else None,
        bought_by=users.get(item.bought_by_id) if item.bought_by_id else None,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


async def to_shopping_item_responses(
    session: AsyncSession, items: list[ShoppingItem]
) -> list[ShoppingItemResponse]:
    users = await resolve_user_summaries(
        session,
        [item.created_by_id for item in items] + [item.bought_by_id for item in items],
    )
    return [to_shopping_item_response(item, users) for item in items]


def _bought_filters(ctx: HouseholdContext, bought: bool | None) -> list:
    filters = [ShoppingItem.household_id == ctx.household_id]
    if bought is True:
        filters.append(ShoppingItem.bought_by_id.is_not(None))
    elif bought is False:
        filters.append(ShoppingItem.bought_by_id.is_(None))
    return filters


@router.get("", response_model=ShoppingListResponse)
async def list_shopping_items(
    bought: bool | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> ShoppingListResponse:
    filters = _bought_filters(ctx, bought)
    count_result = await session.execute(
        select(func.count()).select_from(ShoppingItem).where(*filters)
    )
    total = int(count_result.scalar_one() or 0)

    stmt = (
        select(ShoppingItem)
        .where(*filters)
        .order_by(ShoppingItem.created_at.desc(), ShoppingItem.id.desc())
    )
    result = await session.execute(pagination.apply(stmt))
    items = list(result.scalars().all())
    return ShoppingListResponse(
        items=await to_shopping_item_responses(session, items),
        count=total,
    )


@router.get("/count", response_model=ShoppingCountResponse)
async def count_shopping_items(
    bought: bool | None = Query(default=None),
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> ShoppingCountResponse:
    result = await session.execute(
        select(func.count()).select_from(ShoppingItem).where(*_bought_filters(ctx, bought))
    )
    return ShoppingCountResponse(count=int(result.scalar_one() or 0))


@router.post("", response_model=ShoppingItemResponse, status_code=status.HTTP_201_CREATED)
async def create_shopping_item(
    payload: ShoppingItemCreateRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> ShoppingItemResponse:
    name = payload.name.strip()
    if not name:
        raise ValidationFailed("Item name is required")

    item = ShoppingItem(
        household_id=ctx.household_id,
        name=name,
        cost=payload.cost,
        created_by_id=ctx.user_id,
    )
    session.add(item)
    await session.commit()
    await session.refresh(item)
    await broadcaster.publish(ctx.household_id, RefreshTopic.SHOPPING)

    (response,) = await to_shopping_item_responses(session, [item])
    return response


@router.put("/bought", response_model=ShoppingItemResponse)
async def mark_bought(
    payload: ShoppingItemBoughtRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> ShoppingItemResponse:
    item = await get_household_row(session, ShoppingItem, payload.id, ctx, "Shopping item")
    item.bought_by_id = ctx.user_id if payload.bought else None
    item.updated_at = _current_time()
    session.add(item)
    await session.commit()
    await session.refresh(item)
    await broadcaster.publish(ctx.household_id, RefreshTopic.SHOPPING)

    (response,) = await to_shopping_item_responses(session, [item])
    return response


@router.get("/{item_id}", response_model=ShoppingItemResponse)
async def read_shopping_item(
    item_id: int,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> ShoppingItemResponse:
    item = await get_household_row(session, ShoppingItem, item_id, ctx, "Shopping item")
    (response,) = await to_shopping_item_responses(session, [item])
    return response


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_shopping_item(
    item_id: int,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    item = await get_household_row(session, ShoppingItem, item_id, ctx, "Shopping item")
    if item.created_by_id != ctx.user_id:
        raise Forbidden("Only the member who added this item can delete it.")
    await session.delete(item)
    await session.commit()
    await broadcaster.publish(ctx.household_id, RefreshTopic.SHOPPING)
    return MessageResponse(message="Shopping item deleted successfully")
