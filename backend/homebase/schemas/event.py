from datetime import datetime

from pydantic import Field

from homebase.schemas.common import ApiModel, ClientDatetime, UserSummary


class EventCreateRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = Field(default="", max_length=2000)
    location: str | None = Field(default=None, max_length=255)
    date: ClientDatetime
    attendees: list[int] = Field(default_factory=list, max_length=100)
    cycle: int = 0
    repeat_count: int = Field(default=0, ge=0)


class EventUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=255)
    date: ClientDatetime | None = None
    attendees: list[int] | None = Field(default=None, max_length=100)


class EventAttendRequest(ApiModel):
    event_id: int
    attending: bool = True


class EventResponse(ApiModel):
    id: int
    household_id: int
    name: str
    description: str
    location: str | None = None
    date: datetime
    created_by: UserSummary | None = None
    attendees: list[UserSummary]
    parent_event_id: int | None = None
    cycle: int
    repeat_count: int
    created_at: datetime
    updated_at: datetime


class EventWithChildrenResponse(EventResponse):
    child_events: list[EventResponse] = Field(default_factory=list)


class EventListResponse(ApiModel):
    events: list[EventResponse]
    count: int
