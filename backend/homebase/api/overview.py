from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from homebase.api.bills import to_bill_responses
from homebase.api.chores import to_chore_responses
from homebase.api.deps import HouseholdContext, require_household
from homebase.api.events import to_event_responses
from homebase.api.shopping import to_shopping_item_responses
from homebase.core.config import get_settings
from homebase.core.db import get_session
from homebase.schemas.overview import (
    OverviewBillsResponse,
    OverviewChoresResponse,
    OverviewEventsResponse,
    OverviewResponse,
    OverviewShoppingResponse,
)
from homebase.services.overview import (
    OverviewWindow,
    open_shopping_items,
    upcoming_bills,
    upcoming_chores,
    upcoming_events,
)

settings = get_settings()

router = APIRouter(prefix="/overview", tags=["overview"])


def get_overview_window(
    on_day: date | None = Query(default=None, alias="date"),
    ctx: HouseholdContext = Depends(require_household),
) -> OverviewWindow:
    reference = (
        datetime.combine(on_day, datetime.min.time())
        if on_day is not None
        else datetime.now(UTC).replace(tzinfo=None)
    )
    return OverviewWindow.around(
        ctx.household_id,
        reference,
        days=settings.overview_window_days,
        limit=settings.overview_section_limit,
    )


@router.get("", response_model=OverviewResponse)
async def read_overview(
    window: OverviewWindow = Depends(get_overview_window),
    session: AsyncSession = Depends(get_session),
) -> OverviewResponse:
    # One session cannot run queries concurrently, so sections load in turn.
    events = await upcoming_events(session, window)
    chores = await upcoming_chores(session, window)
    bills = await upcoming_bills(session, window)
    items = await open_shopping_items(session, window)
    return OverviewResponse(
        events=await to_event_responses(session, events),
        chores=await to_chore_responses(session, chores),
        bills=await to_bill_responses(session, bills),
        shopping_items=await to_shopping_item_responses(session, items),
    )


@router.get("/events", response_model=OverviewEventsResponse)
async def read_overview_events(
    window: OverviewWindow = Depends(get_overview_window),
    session: AsyncSession = Depends(get_session),
) -> OverviewEventsResponse:
    events = await upcoming_events(session, window)
    return OverviewEventsResponse(events=await to_event_responses(session, events))


@router.get("/chores", response_model=OverviewChoresResponse)
async def read_overview_chores(
    window: OverviewWindow = Depends(get_overview_window),
    session: AsyncSession = Depends(get_session),
) -> OverviewChoresResponse:
    chores = await upcoming_chores(session, window)
    return OverviewChoresResponse(chores=await to_chore_responses(session, chores))


@router.get("/bills", response_model=OverviewBillsResponse)
async def read_overview_bills(
    window: OverviewWindow = Depends(get_overview_window),
    session: AsyncSession = Depends(get_session),
) -> OverviewBillsResponse:
    bills = await upcoming_bills(session, window)
    return OverviewBillsResponse(bills=await to_bill_responses(session, bills))


@router.get("/shoppingList", response_model=OverviewShoppingResponse)
async def read_overview_shopping(
    window: OverviewWindow = Depends(get_overview_window),
    session: AsyncSession = Depends(get_session),
) -> OverviewShoppingResponse:
    items = await open_shopping_items(session, window)
    return OverviewShoppingResponse(
        shopping_items=await to_shopping_item_responses(session, items)
    )
