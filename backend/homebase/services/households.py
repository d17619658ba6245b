from __future__ import annotations

import logging
import secrets
import string

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from homebase.core.errors import Conflict, InternalError
from homebase.models.bill import Bill
from homebase.models.chore import Chore
from homebase.models.event import Event, EventAttendee
from homebase.models.household import Household
from homebase.models.shopping_item import ShoppingItem
from homebase.models.user import User

logger = logging.getLogger(__name__)

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
JOIN_CODE_LOOKUP_ATTEMPTS = 10
HOUSEHOLD_INSERT_ATTEMPTS = 3


def new_join_code(length: int = 6) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


async def generate_unique_join_code(session: AsyncSession, length: int = 6) -> str:
    for _ in range(JOIN_CODE_LOOKUP_ATTEMPTS):
        candidate = new_join_code(length)
        result = await session.execute(
            select(Household.id).where(Household.join_code == candidate)
        )
        if result.first() is None:
            return candidate
    raise InternalError("Unable to generate join code. Try again.")


async def get_household(session: AsyncSession, household_id: int | None) -> Household | None:
    if household_id is None:
        return None
    result = await session.execute(select(Household).where(Household.id == household_id))
    return result.scalar_one_or_none()


async def get_household_by_join_code(session: AsyncSession, join_code: str) -> Household | None:
    result = await session.execute(
        select(Household).where(Household.join_code == join_code.strip().upper())
    )
    return result.scalar_one_or_none()


async def get_owned_household(session: AsyncSession, owner_id: int) -> Household | None:
    result = await session.execute(select(Household).where(Household.owner_id == owner_id))
    return result.scalar_one_or_none()


async def create_household(
    session: AsyncSession,
    *,
    owner: User,
    name: str,
    join_code_length: int = 6,
) -> Household:
    """Insert the household and make ``owner`` its first member.

    The lookup in ``generate_unique_join_code`` can race with a concurrent
    insert; the unique index on ``join_code`` settles it and the insert is
    retried with a fresh code.
    """
    owner_id = owner.id
    for attempt in range(1, HOUSEHOLD_INSERT_ATTEMPTS + 1):
        household = Household(
            name=name,
            join_code=await generate_unique_join_code(session, join_code_length),
            owner_id=owner_id,
        )
        session.add(household)
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            if await get_owned_household(session, owner_id) is not None:
                raise Conflict("You already own a household.")
            logger.warning(
                "Join code collision creating household (attempt %d/%d)",
                attempt,
                HOUSEHOLD_INSERT_ATTEMPTS,
            )
            await session.refresh(owner)
            continue

        owner.household_id = household.id
        session.add(owner)
        await session.commit()
        logger.info("User %s created household %s", owner_id, household.id)
        return household

    raise InternalError("Unable to create household. Try again.")


async def regenerate_join_code(
    session: AsyncSession, household: Household, length: int = 6
) -> Household:
    household.join_code = await generate_unique_join_code(session, length)
    session.add(household)
    await session.commit()
    await session.refresh(household)
    return household


async def delete_household(session: AsyncSession, household: Household) -> None:
    """Remove the household with every row it owns; members are detached, not deleted.

    The caller commits.
    """
    household_id = household.id
    household_events = select(Event.id).where(Event.household_id == household_id)
    await session.execute(
        delete(EventAttendee).where(EventAttendee.event_id.in_(household_events))
    )
    for model in (Event, Chore, Bill, ShoppingItem):
        await session.execute(delete(model).where(model.household_id == household_id))
    await session.execute(
        update(User).where(User.household_id == household_id).values(household_id=None)
    )
    await session.delete(household)
    logger.info("Deleted household %s", household_id)
