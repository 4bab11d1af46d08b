from datetime import datetime
from pydantic import BaseModel, ConfigDict

from vidtube.schemas.user import OwnerResponse


class VideoResponse(BaseModel):
    """Video response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    video_file: str
    thumbnail: str
    title: str
    description: str | None = None
    duration: int
    views: int
    is_published: bool
    created_at: datetime
    owner: OwnerResponse


class WatchHistoryResponse(BaseModel):
    """Watched videos in watch order."""

    items: list[VideoResponse]
    total: int
