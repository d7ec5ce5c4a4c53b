from codepocket.models.api_key import ApiKey, ApiKeyCreate
from codepocket.models.folder import Folder, FolderCreate, FolderUpdate
from codepocket.models.group import (
    ActivityType,
    Group,
    GroupActivity,
    GroupCreate,
    GroupInvitation,
    GroupMember,
    GroupSnippet,
    GroupSnippetCreate,
    GroupSnippetShare,
    GroupUpdate,
    InvitationCreate,
    InvitationResponse,
    InvitationStatus,
)
from codepocket.models.log_entry import EventCategory, LogEntry, LogEntryCreate
from codepocket.models.profile import Profile, ProfileUpdate
from codepocket.models.snippet import (
    Snippet,
    SnippetCreate,
    SnippetFavoriteUpdate,
    SnippetSource,
    SnippetUpdate,
)
from codepocket.models.user import User

__all__ = [
    "User",
    "Profile",
    "ProfileUpdate",
    "Folder",
    "FolderCreate",
    "FolderUpdate",
    "Snippet",
    "SnippetCreate",
    "SnippetUpdate",
    "SnippetFavoriteUpdate",
    "SnippetSource",
    "ApiKey",
    "ApiKeyCreate",
    "Group",
    "GroupCreate",
    "GroupUpdate",
    "GroupMember",
    "GroupInvitation",
    "InvitationStatus",
    "InvitationCreate",
    "InvitationResponse",
    "GroupSnippet",
    "GroupSnippetShare",
    "GroupSnippetCreate",
    "GroupActivity",
    "ActivityType",
    "LogEntry",
    "LogEntryCreate",
    "EventCategory",
]
