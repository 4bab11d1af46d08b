from pydantic import BaseModel

from vidtube.schemas.user import UserResponse


class Token(BaseModel):
    """JWT token pair response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    """Login credentials. Either email or username identifies the account."""

    email: str | None = None
    username: str | None = None
    password: str


class LoginResponse(Token):
    """Token pair plus the logged in user."""

    user: UserResponse


class RefreshTokenRequest(BaseModel):
    """Request body for token refresh."""

    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    """Request body for password change."""

    old_password: str
    new_password: str
