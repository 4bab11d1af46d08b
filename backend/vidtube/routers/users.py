"""Users router for profile management, channel profiles and watch history."""

from typing import Annotated
from fastapi import APIRouter, Depends, File, UploadFile

from vidtube.dependencies import get_current_user, get_user_service
from vidtube.models.user import User
from vidtube.schemas.user import ChannelProfileResponse, UserResponse, UserUpdate
from vidtube.schemas.video import VideoResponse, WatchHistoryResponse
from vidtube.services.user_service import UserService
from vidtube.utils.media_storage import discard_temp, save_upload_to_temp

router = APIRouter(prefix="/users")


@router.get("/current-user", response_model=UserResponse)
async def get_current_user_details(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get the authenticated user."""
    return current_user


@router.patch("/update-account", response_model=UserResponse)
async def update_account(
    body: UserUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
):
    """Update full name and email."""
    return users.update_account(current_user, body.full_name, body.email)


@router.patch("/avatar", response_model=UserResponse)
async def update_avatar(
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
    avatar: Annotated[UploadFile | None, File()] = None,
):
    """Replace the avatar; the previous file is deleted from storage."""
    avatar_path = await save_upload_to_temp(avatar) if avatar else None
    try:
        return await users.update_avatar(current_user, avatar_path)
    finally:
        discard_temp(avatar_path)


@router.patch("/cover-image", response_model=UserResponse)
async def update_cover_image(
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
    cover_image: Annotated[UploadFile | None, File()] = None,
):
    """Replace the cover image; the previous file is deleted from storage."""
    cover_image_path = await save_upload_to_temp(cover_image) if cover_image else None
    try:
        return await users.update_cover_image(current_user, cover_image_path)
    finally:
        discard_temp(cover_image_path)


@router.get("/c/{username}", response_model=ChannelProfileResponse)
async def get_channel_profile(
    username: str,
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
):
    """
    Get a channel's public profile.

    Includes subscriber count, how many channels it subscribes to, and
    whether the current user is subscribed.
    """
    return users.get_channel_profile(username, current_user)


@router.get("/watch-history", response_model=WatchHistoryResponse)
async def get_watch_history(
    current_user: Annotated[User, Depends(get_current_user)],
    users: Annotated[UserService, Depends(get_user_service)],
):
    """Get the current user's watch history, oldest first."""
    videos = users.get_watch_history(current_user)
    items = [VideoResponse.model_validate(video) for video in videos]

    return WatchHistoryResponse(items=items, total=len(items))
