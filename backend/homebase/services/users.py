from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from homebase.models.bill import Bill
from homebase.models.chore import Chore
from homebase.models.event import Event, EventAttendee
from homebase.models.shopping_item import ShoppingItem
from homebase.models.user import User
from homebase.schemas.common import UserSummary


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def find_user_by_login(session: AsyncSession, login: str) -> User | None:
    """Look a user up by username, falling back to email."""
    value = login.strip()
    result = await session.execute(select(User).where(User.username == value))
    user = result.scalar_one_or_none()
    if user is None:
        result = await session.execute(select(User).where(User.email == value.lower()))
        user = result.scalar_one_or_none()
    return user


async def is_username_taken(
    session: AsyncSession, username: str, exclude_user_id: int | None = None
) -> bool:
    stmt = select(User.id).where(User.username == username)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await session.execute(stmt)
    return result.first() is not None


async def is_email_taken(
    session: AsyncSession, email: str, exclude_user_id: int | None = None
) -> bool:
    stmt = select(User.id).where(User.email == email)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    result = await session.execute(stmt)
    return result.first() is not None


async def resolve_user_summaries(
    session: AsyncSession,
    user_ids: Iterable[int | None],
) -> dict[int, UserSummary]:
    ids = {user_id for user_id in user_ids if user_id is not None}
    if not ids:
        return {}
    result = await session.execute(
        select(User.id, User.username).where(User.id.in_(list(ids)))
    )
    return {
        user_id: UserSummary(id=user_id, username=username)
        for user_id, username in result.all()
    }


async def list_household_members(session: AsyncSession, household_id: int) -> list[User]:
    result = await session.execute(
        select(User).where(User.household_id == household_id).order_by(User.id.asc())
    )
    return list(result.scalars().all())


async def drop_event_attendance(
    session: AsyncSession, *, user_id: int, household_id: int
) -> None:
    household_events = select(Event.id).where(Event.household_id == household_id)
    await session.execute(
        delete(EventAttendee).where(
            EventAttendee.user_id == user_id,
            EventAttendee.event_id.in_(household_events),
        )
    )


async def clear_user_references(session: AsyncSession, user_id: int) -> None:
    """Null out every pointer a household row holds to ``user_id``."""
    for model, columns in (
        (Chore, ("created_by_id", "done_by_id")),
        (Event, ("created_by_id",)),
        (Bill, ("created_by_id", "paid_by_id")),
        (ShoppingItem, ("created_by_id", "bought_by_id")),
    ):
        for column in columns:
            await session.execute(
                update(model)
                .where(getattr(model, column) == user_id)
                .values({column: None})
            )
    await session.execute(delete(EventAttendee).where(EventAttendee.user_id == user_id))
