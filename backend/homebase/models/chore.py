from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Chore(SQLModel, table=True):
    __tablename__ = "chores"

    id: int | None = Field(default=None, primary_key=True)
    household_id: int = Field(foreign_key="households.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    description: str = Field(default="", max_length=2000)
    due_date: datetime = Field(nullable=False, index=True)
    priority: int = Field(default=3, nullable=False)
    done: bool = Field(default=False, nullable=False, index=True)
    done_by_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    created_by_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    parent_id: int | None = Field(default=None, foreign_key="chores.id", index=True)
    cycle: int = Field(default=0, nullable=False)
    repeat_count: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
