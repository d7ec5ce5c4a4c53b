from codepocket.domain.activity_operations import activity_ops
from codepocket.domain.admin_operations import admin_ops
from codepocket.domain.api_key_operations import api_key_ops
from codepocket.domain.folder_operations import folder_ops
from codepocket.domain.group_member_operations import group_member_ops
from codepocket.domain.group_operations import group_ops
from codepocket.domain.group_snippet_operations import group_snippet_ops
from codepocket.domain.invitation_operations import invitation_ops
from codepocket.domain.log_operations import log_ops
from codepocket.domain.profile_operations import profile_ops
from codepocket.domain.snippet_operations import snippet_ops
from codepocket.domain.user_operations import user_ops

__all__ = [
    "user_ops",
    "profile_ops",
    "folder_ops",
    "snippet_ops",
    "api_key_ops",
    "group_ops",
    "group_member_ops",
    "group_snippet_ops",
    "invitation_ops",
    "activity_ops",
    "log_ops",
    "admin_ops",
]
