from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Column, Numeric
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Bill(SQLModel, table=True):
    __tablename__ = "bills"

    id: int | None = Field(default=None, primary_key=True)
    household_id: int = Field(foreign_key="households.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    description: str = Field(default="", max_length=2000)
    amount: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    due_date: datetime = Field(nullable=False, index=True)
    cycle: int = Field(default=0, nullable=False)
    created_by_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    paid_by_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
    updated_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
