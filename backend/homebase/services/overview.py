"""Dashboard reads: the next few days of household activity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from homebase.models.bill import Bill
from homebase.models.chore import Chore
from homebase.models.event import Event
from homebase.models.shopping_item import ShoppingItem


@dataclass(frozen=True)
class OverviewWindow:
    household_id: int
    start: datetime
    end: datetime
    limit: int

    @classmethod
    def around(
        cls,
        household_id: int,
        reference: datetime,
        days: int = 7,
        limit: int = 5,
    ) -> OverviewWindow:
        """``[start of reference day, end of reference day + days]``, end exclusive."""
        start = datetime.combine(reference.date(), time.min)
        return cls(
            household_id=household_id,
            start=start,
            end=start + timedelta(days=days + 1),
            limit=limit,
        )


async def upcoming_events(session: AsyncSession, window: OverviewWindow) -> list[Event]:
    result = await session.execute(
        select(Event)
        .where(
            Event.household_id == window.household_id,
            Event.date >= window.start,
            Event.date < window.end,
        )
        .order_by(Event.date.asc(), Event.id.asc())
        .limit(window.limit)
    )
    return list(result.scalars().all())


async def upcoming_chores(session: AsyncSession, window: OverviewWindow) -> list[Chore]:
    # Same priority convention as the chore list: lower number first.
    result = await session.execute(
        select(Chore)
        .where(
            Chore.household_id == window.household_id,
            Chore.done.is_(False),
            Chore.due_date >= window.start,
            Chore.due_date < window.end,
        )
        .order_by(Chore.due_date.asc(), Chore.priority.asc(), Chore.id.asc())
        .limit(window.limit)
    )
    return list(result.scalars().all())


async def upcoming_bills(session: AsyncSession, window: OverviewWindow) -> list[Bill]:
    result = await session.execute(
        select(Bill)
        .where(
            Bill.household_id == window.household_id,
            Bill.paid_by_id.is_(None),
            Bill.due_date >= window.start,
            Bill.due_date < window.end,
        )
        .order_by(Bill.due_date.asc(), Bill.id.asc())
        .limit(window.limit)
    )
    return list(result.scalars().all())


async def open_shopping_items(
    session: AsyncSession, window: OverviewWindow
) -> list[ShoppingItem]:
    """Shopping items carry no due date, so only the row limit applies."""
    result = await session.execute(
        select(ShoppingItem)
        .where(
            ShoppingItem.household_id == window.household_id,
            ShoppingItem.bought_by_id.is_(None),
        )
        .order_by(ShoppingItem.created_at.asc(), ShoppingItem.id.asc())
        .limit(window.limit)
    )
    return list(result.scalars().all())
