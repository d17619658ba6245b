from dataclasses import dataclass
from typing import TypeVar

from fastapi import Depends, Query
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from homebase.core.config import get_settings
from homebase.core.db import get_session
from homebase.core.errors import (
    Forbidden,
    NoHousehold,
    NotFound,
    Unauthenticated,
    ValidationFailed,
)
from homebase.core.security import decode_access_token
from homebase.models.user import User
from homebase.services.recurrence import InvalidCycleCode, Recurrence

settings = get_settings()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

RowT = TypeVar("RowT", bound=SQLModel)


@dataclass
class SessionContext:
    user_id: int
    username: str
    household_id: int | None
    user: User


@dataclass
class HouseholdContext:
    user_id: int
    username: str
    household_id: int
    user: User


@dataclass
class Pagination:
    skip: int
    limit: int | None

    def apply(self, stmt):
        stmt = stmt.offset(self.skip)
        if self.limit is not None:
            stmt = stmt.limit(self.limit)
        return stmt


async def resolve_token(session: AsyncSession, token: str | None) -> SessionContext:
    """Turn a bearer token into the caller's context.

    ``household_id`` comes from the users table, not from the token claim, so
    a token minted before leaving a household grants nothing there.
    """
    if not token:
        raise Unauthenticated()
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise Unauthenticated("Invalid authentication credentials")

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise Unauthenticated("Invalid authentication credentials")
    return SessionContext(
        user_id=user.id,
        username=user.username,
        household_id=user.household_id,
        user=user,
    )


async def get_session_context(
    session: AsyncSession = Depends(get_session),
    token: str | None = Depends(oauth2_scheme),
) -> SessionContext:
    return await resolve_token(session, token)


async def require_household(
    ctx: SessionContext = Depends(get_session_context),
) -> HouseholdContext:
    if ctx.household_id is None:
        raise NoHousehold()
    return HouseholdContext(
        user_id=ctx.user_id,
        username=ctx.username,
        household_id=ctx.household_id,
        user=ctx.user,
    )


async def get_household_row(
    session: AsyncSession,
    model: type[RowT],
    row_id: int,
    ctx: HouseholdContext,
    label: str,
) -> RowT:
    result = await session.execute(select(model).where(model.id == row_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise NotFound(label, row_id)
    if row.household_id != ctx.household_id:
        raise Forbidden(f"This {label.lower()} belongs to another household.")
    return row


def get_pagination(
    skip: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1, le=100),
) -> Pagination:
    return Pagination(skip=skip, limit=limit)


def parse_recurrence(cycle: int, repeat_count: int) -> Recurrence:
    """Translate the wire cycle code; only place raw codes are interpreted."""
    try:
        recurrence = Recurrence.from_cycle_code(cycle)
    except InvalidCycleCode as exc:
        raise ValidationFailed(str(exc)) from exc
    if repeat_count < 0 or repeat_count > settings.max_repeat_count:
        raise ValidationFailed(
            f"repeatCount must be between 0 and {settings.max_repeat_count}"
        )
    return recurrence
