import logging
from collections import defaultdict
from datetime import UTC, date, datetime, time, timedelta

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
from homebase.models.event import Event, EventAttendee
from homebase.models.user import User
from homebase.schemas.common import MessageResponse, UserSummary
from homebase.schemas.event import (
    EventAttendRequest,
    EventCreateRequest,
    EventListResponse,
    EventResponse,
    EventUpdateRequest,
    EventWithChildrenResponse,
)
from homebase.services.realtime import HouseholdBroadcaster, RefreshTopic, get_broadcaster
from homebase.services.recurrence import occurrence_dates
from homebase.services.users import resolve_user_summaries

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/event", tags=["events"])


def _current_time() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_event_response(
    event: Event,
    attendee_ids: list[int],
    users: dict[int, UserSummary],
) -> EventResponse:
    return EventResponse(
        id=event.id,
        household_id=event.household_id,
        name=event.name,
        description=event.description,
        location=event.location,
        date=event.date,
        created_by=users.get(event.created_by_id) if event.created_by_id else None,
        attendees=[users[user_id] for user_id in attendee_ids if user_id in users],
        parent_event_id=event.parent_id,
        cycle=event.cycle,
        repeat_count=event.repeat_count,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


async def _attendee_map(session: AsyncSession, event_ids: list[int]) -> dict[int, list[int]]:
    if not event_ids:
        return {}
    result = await session.execute(
        select(EventAttendee.event_id, EventAttendee.user_id)
        .where(EventAttendee.event_id.in_(event_ids))
        .order_by(EventAttendee.id.asc())
    )
    attendees: dict[int, list[int]] = defaultdict(list)
    for event_id, user_id in result.all():
        attendees[event_id].append(user_id)
    return attendees


async def to_event_responses(session: AsyncSession, events: list[Event]) -> list[EventResponse]:
    attendees = await _attendee_map(session, [event.id for event in events])
    user_ids = [event.created_by_id for event in events]
    for ids in attendees.values():
        user_ids.extend(ids)
    users = await resolve_user_summaries(session, user_ids)
    return [to_event_response(event, attendees.get(event.id, []), users) for event in events]


async def _validated_attendees(
    session: AsyncSession, ctx: HouseholdContext, attendee_ids: list[int]
) -> list[int]:
    unique_ids = list(dict.fromkeys(attendee_ids))
    if not unique_ids:
        return []
    result = await session.execute(
        select(User.id).where(
            User.id.in_(unique_ids),
            User.household_id == ctx.household_id,
        )
    )
    members = set(result.scalars().all())
    unknown = [user_id for user_id in unique_ids if user_id not in members]
    if unknown:
        raise ValidationFailed(
            "Attendees must be members of your household: "
            + ", ".join(str(user_id) for user_id in unknown)
        )
    return unique_ids


def _clean_name(raw_name: str) -> str:
    name = raw_name.strip()
    if not name:
        raise ValidationFailed("Event name is required")
    return name


@router.get("", response_model=EventListResponse)
async def list_events(
    on_day: date | None = Query(default=None, alias="date"),
    attending: bool | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
) -> EventListResponse:
    filters = [Event.household_id == ctx.household_id]
    if on_day is not None:
        day_start = datetime.combine(on_day, time.min)
        filters.append(Event.date >= day_start)
        filters.append(Event.date < day_start + timedelta(days=1))
    if attending is not None:
        attended = select(EventAttendee.event_id).where(EventAttendee.user_id == ctx.user_id)
        filters.append(Event.id.in_(attended) if attending else Event.id.not_in(attended))

    count_result = await session.execute(
        select(func.count()).select_from(Event).where(*filters)
    )
    total = int(count_result.scalar_one() or 0)

    stmt = select(Event).where(*filters).order_by(Event.date.asc(), Event.id.asc())
    result = await session.execute(pagination.apply(stmt))
    events = list(result.scalars().all())
    return EventListResponse(events=await to_event_responses(session, events), count=total)


@router.post(
    "",
    response_model=EventWithChildrenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    payload: EventCreateRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> EventWithChildrenResponse:
    recurrence = parse_recurrence(payload.cycle, payload.repeat_count)
    name = _clean_name(payload.name)
    attendee_ids = await _validated_attendees(session, ctx, payload.attendees)
    location = payload.location.strip() if payload.location else None

    parent = Event(
        household_id=ctx.household_id,
        name=name,
        description=payload.description.strip(),
        location=location or None,
        date=payload.date,
        created_by_id=ctx.user_id,
        cycle=recurrence.to_cycle_code(),
        repeat_count=payload.repeat_count,
    )
    session.add(parent)
    await session.flush()

    children = [
        Event(
            household_id=ctx.household_id,
            name=name,
            description=parent.description,
            location=parent.location,
            date=occurs_at,
            created_by_id=ctx.user_id,
            parent_id=parent.id,
            cycle=parent.cycle,
            repeat_count=0,
        )
        for occurs_at in occurrence_dates(
            parent.date,
            recurrence,
            payload.repeat_count,
            max_count=settings.max_repeat_count,
        )
    ]
    session.add_all(children)
    await session.flush()

    session.add_all(
        EventAttendee(event_id=event.id, user_id=user_id)
        for event in [parent, *children]
        for user_id in attendee_ids
    )
    await session.commit()
    logger.info(
        "Created event %s with %d occurrences in household %s",
        parent.id,
        len(children),
        ctx.household_id,
    )
    await broadcaster.publish(ctx.household_id, RefreshTopic.EVENTS)

    users = await resolve_user_summaries(session, [ctx.user_id, *attendee_ids])
    response = to_event_response(parent, attendee_ids, users)
    return EventWithChildrenResponse(
        **response.model_dump(),
        child_events=[to_event_response(child, attendee_ids, users) for child in children],
    )


@router.put("/attend", response_model=EventResponse)
async def attend_event(
    payload: EventAttendRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> EventResponse:
    event = await get_household_row(session, Event, payload.event_id, ctx, "Event")
    result = await session.execute(
        select(EventAttendee).where(
            EventAttendee.event_id == event.id,
            EventAttendee.user_id == ctx.user_id,
        )
    )
    existing = result.scalar_one_or_none()

    if payload.attending and existing is None:
        session.add(EventAttendee(event_id=event.id, user_id=ctx.user_id))
    elif not payload.attending and existing is not None:
        await session.delete(existing)
    await session.commit()
    await broadcaster.publish(ctx.household_id, RefreshTopic.EVENTS)

    (response,) = await to_event_responses(session, [event])
    return response


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    payload: EventUpdateRequest,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> EventResponse:
    event = await get_household_row(session, Event, event_id, ctx, "Event")
    updates = payload.model_dump(exclude_unset=True)

    if updates.get("name") is not None:
        event.name = _clean_name(updates["name"])
    if updates.get("description") is not None:
        event.description = updates["description"].strip()
    if "location" in updates:
        location = (updates["location"] or "").strip()
        event.location = location or None
    if updates.get("date") is not None:
        event.date = updates["date"]
    if updates.get("attendees") is not None:
        attendee_ids = await _validated_attendees(session, ctx, updates["attendees"])
        await session.execute(delete(EventAttendee).where(EventAttendee.event_id == event.id))
        session.add_all(
            EventAttendee(event_id=event.id, user_id=user_id) for user_id in attendee_ids
        )

    event.updated_at = _current_time()
    session.add(event)
    await session.commit()
    await session.refresh(event)
    await broadcaster.publish(ctx.household_id, RefreshTopic.EVENTS)

    (response,) = await to_event_responses(session, [event])
    return response


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: int,
    ctx: HouseholdContext = Depends(require_household),
    session: AsyncSession = Depends(get_session),
    broadcaster: HouseholdBroadcaster = Depends(get_broadcaster),
) -> MessageResponse:
    event = await get_household_row(session, Event, event_id, ctx, "Event")
    series = select(Event.id).where((Event.id == event.id) | (Event.parent_id == event.id))
    await session.execute(delete(EventAttendee).where(EventAttendee.event_id.in_(series)))
    await session.execute(delete(Event).where(Event.parent_id == event.id))
    await session.delete(event)
    await session.commit()
    await broadcaster.publish(ctx.household_id, RefreshTopic.EVENTS)
    return MessageResponse(message="Event deleted successfully")
