from vidtube.models.user import User
from vidtube.models.video import Video, WatchHistoryEntry
from vidtube.models.subscription import Subscription

__all__ = [
    "User",
    "Video",
    "WatchHistoryEntry",
    "Subscription",
]
