from pydantic import EmailStr, Field

from homebase.schemas.common import ApiModel


class SignupRequest(ApiModel):
    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class LoginRequest(ApiModel):
    username: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(ApiModel):
    id: int
    username: str
    email: EmailStr
    household_id: int | None = None
    profile_picture_id: int | None = None


class AuthResponse(ApiModel):
    token: TokenResponse
    user: UserResponse


class SessionResponse(ApiModel):
    id: int
    username: str
    household_id: int | None = None
