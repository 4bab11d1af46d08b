from vidtube.schemas.auth import (
    Token,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    ChangePasswordRequest,
)
from vidtube.schemas.user import (
    UserBase,
    UserResponse,
    UserUpdate,
    OwnerResponse,
    ChannelProfileResponse,
)
from vidtube.schemas.video import VideoResponse, WatchHistoryResponse

__all__ = [
    "Token",
    "LoginRequest",
    "LoginResponse",
    "RefreshTokenRequest",
    "ChangePasswordRequest",
    "UserBase",
    "UserResponse",
    "UserUpdate",
    "OwnerResponse",
    "ChannelProfileResponse",
    "VideoResponse",
    "WatchHistoryResponse",
]
