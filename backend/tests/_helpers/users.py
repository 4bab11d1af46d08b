from __future__ import annotations

from sqlalchemy.orm import Session

from vidtube.models.subscription import Subscription
from vidtube.models.user import User
from vidtube.models.video import Video, WatchHistoryEntry
from vidtube.services.credentials import hash_password


def make_user(
    db: Session,
    *,
    username: str = "alice",
    password: str = "alice-password",
    email: str | None = None,
    full_name: str | None = None,
) -> User:
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        full_name=full_name or username.title(),
        password_hash=hash_password(password),
        avatar=f"http://testserver/media/{username}.png",
        cover_image="",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_video(db: Session, owner: User, *, title: str) -> Video:
    video = Video(
        owner_id=owner.id,
        video_file=f"http://testserver/media/{title}.mp4",
        thumbnail=f"http://testserver/media/{title}.jpg",
        title=title,
        duration=120,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def watch(db: Session, user: User, video: Video) -> None:
    db.add(WatchHistoryEntry(user_id=user.id, video_id=video.id))
    db.commit()


def subscribe(db: Session, subscriber: User, channel: User) -> None:
    db.add(Subscription(subscriber_id=subscriber.id, channel_id=channel.id))
    db.commit()
