from datetime import datetime
from pydantic import BaseModel, EmailStr, ConfigDict


class UserBase(BaseModel):
    """Base user schema."""

    email: EmailStr
    username: str
    full_name: str


class UserResponse(UserBase):
    """User response schema. Never carries the password hash or refresh token."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    avatar: str
    cover_image: str = ""
    created_at: datetime
    updated_at: datetime


class UserUpdate(BaseModel):
    """Schema for updating account details."""

    full_name: str
    email: EmailStr


class OwnerResponse(BaseModel):
    """Public projection of a video owner."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    full_name: str
    avatar: str


class ChannelProfileResponse(BaseModel):
    """Channel profile with subscription counts."""

    id: int
    username: str
    full_name: str
    email: str
    avatar: str
    cover_image: str = ""
    created_at: datetime
    subscribers_count: int
    channels_subscribed_to_count: int
    is_subscribed: bool
