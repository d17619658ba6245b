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
from homebase.core.errors import ValidationFailed
from homebase.models.bill import Bill
from homebase.schemas.bill import (
    BillActionResponse,
    BillCreateRequest,
    BillListResponse,
    BillPaidToggleRequest,
    BillResponse,
    BillUpdateRequest,
)
from homebase.schemas.common import MessageResponse, UserSummary
from homebase.services.realtime import HouseholdBroadcaster, RefreshTopic, get_broadcaster
from homebase.services.users import resolve_user_summaries

router = APIRouter(prefix="/bill", tags=["bills"])


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_bill_response(bill: Bill, users: dict[int, UserSummary]) -> BillResponse:
    return BillResponse(
        id=bill.id,
        household_id=bill.household_id,
        name=bill.name,
        description=bill.description,
        amount=float(bill.amount),
        due_date=bill.due_date,
        cycle=bill.cycle,
        created_by=users.get(bill.created_by_id) if bill.created_by_id else None,
        paid_by=users.get(bill.paid_by_id) if bill.paid_by_id else None,
        created_at=bill.created_at,
        updated_at=bill.updated_at,
    )


async def to_bill_responses(session: AsyncSession, bills: list[Bill]) -> list[BillResponse]:
    users = await resolve_user_summaries(
        session,
        [bill.created_by_id for bill in bills] + [bill.paid_by_id for bill in bills],
    )
    return [to_bill_response(bill, users) for bill in bills]


def _clean_name(raw_name: str) -> str:
    name = raw_name.strip()
    if not name:
        raise ValidationFailed("Bill name is required")
    return name


@router.get("", response_model=BillListResponse)
async def list_bills(
    paid: bool | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> BillListResponse:
    filters = [Bill.household_id == ctx.household_id]
    if paid is True:
        filters.append(Bill.paid_by_id.is_not(None))
    elif paid is False:
        filters.append(Bill.paid_by_id.is_(None))

    count_result = await session.execute(
        select(func.count()).select_from(Bill).where(*filters)
    )
    total = int(count_result.scalar_one() or 0)

    stmt = select(Bill).where(*filters).order_by(Bill.due_date.asc(), Bill.id.asc())
    result = await session.execute(pagination.apply(stmt))
    bills = list(result.scalars().all())
    return BillListResponse(bills=await to_bill_responses(session, bills), count=total)


@router.post("", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    payload: BillCreateRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> BillResponse:
    bill = Bill(
        household_id=ctx.household_id,
        name=_clean_name(payload.name),
        description=payload.description.strip(),
        amount=payload.amount,
        due_date=payload.due_date,
        cycle=payload.cycle,
        created_by_id=ctx.user_id,
    )
    session.add(bill)
    await session.commit()
    await session.refresh(bill)
    await broadcaster.publish(ctx.household_id, RefreshTopic.BILLS)

    (response,) = await to_bill_responses(session, [bill])
    return response


@router.put("/paidToggle", response_model=BillActionResponse)
async def toggle_bill_paid(
    payload: BillPaidToggleRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> BillActionResponse:
    bill = await get_household_row(session, Bill, payload.id, ctx, "Bill")
    bill.paid_by_id = ctx.user_id if payload.paid else None
    bill.updated_at = _current_time()
    session.add(bill)
    await session.commit()
    await session.refresh(bill)
    await broadcaster.publish(ctx.household_id, RefreshTopic.BILLS)

    (response,) = await to_bill_responses(session, [bill])
    return BillActionResponse(
        message="Bill marked as paid" if payload.paid else "Bill marked as unpaid",
        bill=response,
    )


@router.get("/{bill_id}", response_model=BillResponse)
async def read_bill(
    bill_id: int,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> BillResponse:
    bill = await get_household_row(session, Bill, bill_id, ctx, "Bill")
    (response,) = await to_bill_responses(session, [bill])
    return response


@router.put("/{bill_id}", response_model=BillResponse)
async def update_bill(
    bill_id: int,
    payload: BillUpdateRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> BillResponse:
    bill = await get_household_row(session, Bill, bill_id, ctx, "Bill")
    updates = payload.model_dump(exclude_unset=True)

    if updates.get("name") is not None:
        bill.name = _clean_name(updates["name"])
    if updates.get("description") is not None:
        bill.description = updates["description"].strip()
    if updates.get("amount") is not None:
        bill.amount = updates["amount"]
    if updates.get("due_date") is not None:
        bill.due_date = updates["due_date"]
    if updates.get("cycle") is not None:
        bill.cycle = updates["cycle"]

    bill.updated_at = _current_time()
    session.add(bill)
    await session.commit()
    await session.refresh(bill)
    await broadcaster.publish(ctx.household_id, RefreshTopic.BILLS)

    (response,) = await to_bill_responses(session, [bill])
    return response


@router.delete("/{bill_id}", response_model=MessageResponse)
async def delete_bill(
    bill_id: int,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    bill = await get_household_row(session, Bill, bill_id, ctx, "Bill")
    await session.delete(bill)
    await session.commit()
    await broadcaster.publish(ctx.household_id, RefreshTopic.BILLS)
    return MessageResponse(message="Bill deleted successfully")
