# Services package

from codepocket.services.avatar_storage import AvatarStorage, avatar_storage
from codepocket.services.event_logger import EventLogger, event_logger

__all__ = [
    "AvatarStorage",
    "avatar_storage",
    "EventLogger",
    "event_logger",
]
