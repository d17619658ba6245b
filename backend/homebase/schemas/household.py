from datetime import datetime

from pydantic import EmailStr, Field

from homebase.schemas.auth import TokenResponse
from homebase.schemas.common import ApiModel


class HouseholdCreateRequest(ApiModel):
    household_name: str = Field(default="", max_length=120)


class HouseholdJoinRequest(ApiModel):
    join_code: str = Field(default="", max_length=16)


class HouseholdRenameRequest(ApiModel):
    name: str = Field(default="", max_length=120)


class HouseholdMember(ApiModel):
    id: int
    username: str
    email: EmailStr


class HouseholdResponse(ApiModel):
    id: int
    name: str
    join_code: str
    created_at: datetime
    owner: HouseholdMember | None = None
    users: list[HouseholdMember]


class HouseholdActionResponse(ApiModel):
    message: str
    household: HouseholdResponse
    token: TokenResponse | None = None


class JoinCodeResponse(ApiModel):
    join_code: str


class ProfilePictureResponse(ApiModel):
    id: int
    name: str
    image_url: str
    category: str | None = None


class MemberProfile(HouseholdMember):
    profile_picture: ProfilePictureResponse


class MemberChoreCount(HouseholdMember):
    chores_done: int
