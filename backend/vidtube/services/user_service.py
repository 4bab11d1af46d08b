"""User account service: registration, profile updates, channel and history queries."""

from typing import Any, Dict, List

from fastapi.concurrency import run_in_threadpool
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from vidtube.config import settings
from vidtube.exceptions import (
    ConflictError,
    MediaStorageError,
    NotFoundError,
    StorageError,
    ValidationFailure,
)
from vidtube.logger import api_logger, db_logger
from vidtube.models.subscription import Subscription
from vidtube.models.user import User
from vidtube.models.video import Video, WatchHistoryEntry
from vidtube.redis_client import RedisClient
from vidtube.services.credentials import hash_password
from vidtube.services.user_store import UserStore
from vidtube.utils.media_storage import MediaStorage


_email_adapter = TypeAdapter(EmailStr)


def channel_cache_key(username: str) -> str:
    return f"channel_profile:{username}"


def normalize_email(email: str) -> str:
    try:
        return _email_adapter.validate_python(email.strip()).lower()
    except ValidationError:
        raise ValidationFailure("Invalid email address") from None


class UserService:
    """Account operations that sit around the session lifecycle."""

    def __init__(self, db: Session, media: MediaStorage, cache: RedisClient):
        self.db = db
        self.users = UserStore(db)
        self.media = media
        self.cache = cache

    async def register(
        self,
        full_name: str,
        email: str,
        username: str,
        password: str,
        avatar_path: str | None,
        cover_image_path: str | None = None,
    ) -> User:
        """
        Create an account with an uploaded avatar and optional cover image.

        Raises:
            ValidationFailure: blank field or missing avatar
            ConflictError: email or username already in use
            MediaStorageError: avatar upload failed
            StorageError: database write failed
        """
        if any(not (field or "").strip() for field in (full_name, email, username, password)):
            raise ValidationFailure("All fields are required")

        email = normalize_email(email)
        username = username.strip().lower()

        if self.users.find_by_identifier(email=email, username=username):
            raise ConflictError("User with email or username already exists")

        if not avatar_path:
            raise ValidationFailure("Avatar file is required")

        avatar = await self.media.upload(avatar_path)
        if avatar is None:
            raise MediaStorageError("Avatar upload failed")
        cover_image = await self.media.upload(cover_image_path)

        try:
            password_hash = await run_in_threadpool(hash_password, password)
            user = self.users.save(
                User(
                    full_name=full_name.strip(),
                    email=email,
                    username=username,
                    password_hash=password_hash,
                    avatar=avatar.url,
                    cover_image=cover_image.url if cover_image else "",
                )
            )
        except (ConflictError, StorageError):
            await self.media.delete(avatar.url)
            if cover_image:
                await self.media.delete(cover_image.url)
            raise

        api_logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def update_account(self, user: User, full_name: str, email: str) -> User:
        if not (full_name or "").strip() or not (email or "").strip():
            raise ValidationFailure("All fields are required")

        email = normalize_email(email)
        if self.users.email_taken(email, exclude_user_id=user.id):
            raise ConflictError("Email already in use")

        user.full_name = full_name.strip()
        user.email = email
        user = self.users.save(user)

        self.invalidate_channel_profile(user.username)
        return user

    async def update_avatar(self, user: User, avatar_path: str | None) -> User:
        if not avatar_path:
            raise ValidationFailure("Avatar file is missing")

        avatar = await self.media.upload(avatar_path)
        if avatar is None:
            raise MediaStorageError("Error while uploading avatar")

        old_url = user.avatar
        user.avatar = avatar.url
        user = self.users.save(user)

        await self.media.delete(old_url)
        self.invalidate_channel_profile(user.username)
        return user

    async def update_cover_image(self, user: User, cover_image_path: str | None) -> User:
        if not cover_image_path:
            raise ValidationFailure("Cover image is missing")

        cover_image = await self.media.upload(cover_image_path)
        if cover_image is None:
            raise MediaStorageError("Error while uploading cover image")

        old_url = user.cover_image
        user.cover_image = cover_image.url
        user = self.users.save(user)

        await self.media.delete(old_url)
        self.invalidate_channel_profile(user.username)
        return user

    def get_channel_profile(self, username: str, viewer: User) -> Dict[str, Any]:
        """
        Channel fields plus subscription counts for `username`.

        The viewer-independent part is cached; is_subscribed is always fresh.
        """
        if not (username or "").strip():
            raise ValidationFailure("Username is missing")
        username = username.strip().lower()

        profile = self.cache.get_json(channel_cache_key(username))
        if profile:
            api_logger.debug(f"Returning cached channel profile for {username}")
        else:
            profile = self._load_channel_profile(username)
            self.cache.set_json(
                channel_cache_key(username),
                profile,
                expire=settings.channel_profile_cache_seconds,
            )

        try:
            is_subscribed = (
                self.db.query(Subscription.id)
                .filter(
                    Subscription.channel_id == profile["id"],
                    Subscription.subscriber_id == viewer.id,
                )
                .first()
                is not None
            )
        except SQLAlchemyError as e:
            db_logger.error(f"Subscription lookup failed: {e}")
            raise StorageError() from e

        return {**profile, "is_subscribed": is_subscribed}

    def _load_channel_profile(self, username: str) -> Dict[str, Any]:
        channel = self.users.find_by_username(username)
        if channel is None:
            raise NotFoundError("Channel not found")

        try:
            subscribers_count = (
                self.db.query(func.count(Subscription.id))
                .filter(Subscription.channel_id == channel.id)
                .scalar()
            ) or 0
            subscribed_to_count = (
                self.db.query(func.count(Subscription.id))
                .filter(Subscription.subscriber_id == channel.id)
                .scalar()
            ) or 0
        except SQLAlchemyError as e:
            db_logger.error(f"Subscription count failed: {e}")
            raise StorageError() from e

        return {
            "id": channel.id,
            "username": channel.username,
            "full_name": channel.full_name,
            "email": channel.email,
            "avatar": channel.avatar,
            "cover_image": channel.cover_image or "",
            "created_at": channel.created_at.isoformat(),
            "subscribers_count": subscribers_count,
            "channels_subscribed_to_count": subscribed_to_count,
        }

    def invalidate_channel_profile(self, username: str) -> None:
        self.cache.delete(channel_cache_key(username))

    def get_watch_history(self, user: User) -> List[Video]:
        """Watched videos in the order they were watched, owners loaded."""
        try:
            entries = (
                self.db.query(WatchHistoryEntry)
                .options(joinedload(WatchHistoryEntry.video).joinedload(Video.owner))
                .filter(WatchHistoryEntry.user_id == user.id)
                .order_by(WatchHistoryEntry.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            db_logger.error(f"Watch history lookup failed for user {user.id}: {e}")
            raise StorageError() from e

        return [entry.video for entry in entries]
