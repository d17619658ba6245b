from pydantic import EmailStr, Field

from homebase.schemas.common import ApiModel
from homebase.schemas.household import ProfilePictureResponse


class UserUpdateRequest(ApiModel):
    username: str | None = Field(
        default=None, min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$"
    )
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)


class ProfilePictureUpdateRequest(ApiModel):
    profile_picture_id: int = Field(ge=0)


class CurrentProfilePictureResponse(ApiModel):
    profile_picture: ProfilePictureResponse | None = None


class ProfilePictureListResponse(ApiModel):
    profile_pictures: list[ProfilePictureResponse]
