"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """New account credentials. rolId falls back to the default role."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    role_id: int | None = Field(default=None, alias="rolId", description="Role id")


class RegisterResponse(BaseModel):
    id: int
    email: str


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class UserOut(BaseModel):
    """Authenticated user projection (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role_id: int = Field(..., serialization_alias="rolId")


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Login successful"
    access_token: str = Field(..., serialization_alias="accessToken")
    refresh_token: str = Field(..., serialization_alias="refreshToken")
    user: UserOut


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(..., min_length=1, alias="refreshToken")


class TokenPairResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., serialization_alias="accessToken")
    refresh_token: str = Field(..., serialization_alias="refreshToken")


class MessageResponse(BaseModel):
    message: str


class CurrentUser(BaseModel):
    """Identity taken from a verified access token, for dependency injection."""

    id: int
    email: str
    role_id: int
