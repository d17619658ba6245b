from datetime import UTC, datetime

from pydantic import EmailStr
from sqlalchemy import Column, String
from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False)
    )
    email: EmailStr = Field(
        sa_column=Column(String(320), unique=True, index=True, nullable=False)
    )
    password_hash: str = Field(nullable=False, max_length=255)
    household_id: int | None = Field(
        default=None,
        foreign_key="households.id",
        index=True,
    )
    profile_picture_id: int | None = Field(
        default=None,
        foreign_key="profile_pictures.id",
    )
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
