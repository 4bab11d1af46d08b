from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship

from vidtube.database import Base


class User(Base):
    """User model for channel accounts and their current session."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(64), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)

    # bcrypt hash, never the plaintext password
    password_hash = Column(String(255), nullable=False)

    # Media URLs
    avatar = Column(String(512), nullable=False)
    cover_image = Column(String(512), nullable=False, default="")

    # Single active session: the only refresh token accepted for this user
    refresh_token = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan")
    watch_history = relationship(
        "WatchHistoryEntry",
        back_populates="user",
        order_by="WatchHistoryEntry.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User {self.username}>"
