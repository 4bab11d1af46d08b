from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    ForeignKey,
    Boolean,
    Index,
)
from sqlalchemy.orm import relationship

from vidtube.database import Base


class Video(Base):
    """Video uploaded to a channel."""

    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Media
    video_file = Column(String(512), nullable=False)
    thumbnail = Column(String(512), nullable=False)

    # Video details
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # seconds
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    owner = relationship("User", back_populates="videos")


class WatchHistoryEntry(Base):
    """One watched video in a user's history; id order is watch order."""

    __tablename__ = "watch_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    video_id = Column(
        Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False
    )
    watched_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="watch_history")
    video = relationship("Video")

    __table_args__ = (Index("idx_watch_history_user", "user_id", "id"),)
