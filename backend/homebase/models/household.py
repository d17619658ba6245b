from datetime import UTC, datetime

from sqlalchemy import Column, Integer
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Household(SQLModel, table=True):
    __tablename__ = "households"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=120, nullable=False)
    join_code: str = Field(index=True, unique=True, nullable=False, max_length=16)
    # users.household_id already points here; a second FK would make the
    # two tables mutually dependent, so owner_id stays a plain unique column.
    owner_id: int = Field(
        sa_column=Column(Integer, unique=True, index=True, nullable=False)
    )
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
