from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: int | None = Field(default=None, primary_key=True)
    household_id: int = Field(foreign_key="households.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    description: str = Field(default="", max_length=2000)
    location: str | None = Field(default=None, max_length=255)
    date: datetime = Field(nullable=False, index=True)
    created_by_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    parent_id: int | None = Field(default=None, foreign_key="events.id", index=True)
    cycle: int = Field(default=0, nullable=False)
    repeat_count: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now_naive, nullable=False)


class EventAttendee(SQLModel, table=True):
    __tablename__ = "event_attendees"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
    )

    id: int | None = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="events.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
