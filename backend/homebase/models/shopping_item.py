from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Column, Numeric
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class ShoppingItem(SQLModel, table=True):
    __tablename__ = "shopping_items"

    id: int | None = Field(default=None, primary_key=True)
    household_id: int = Field(foreign_key="households.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=120)
    cost: Decimal = Field(sa_column=Column(Numeric(10, 2), nullable=False))
    created_by_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    bought_by_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False, index=True)
    updated_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
