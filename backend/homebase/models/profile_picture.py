from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


DEFAULT_AVATAR_ID = 0
DEFAULT_AVATAR_NAME = "Default Avatar"
DEFAULT_AVATAR_URL = "/images/avatars/defaultAvatar.png"
DEFAULT_AVATAR_CATEGORY = "default"


class ProfilePicture(SQLModel, table=True):
    __tablename__ = "profile_pictures"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=120)
    image_url: str = Field(nullable=False, max_length=512)
    category: str | None = Field(default=None, max_length=40, index=True)
    created_at: datetime = Field(default_factory=utc_now_naive, nullable=False)
