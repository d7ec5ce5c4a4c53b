from codepocket.api.v1 import (
    admin,
    api_keys,
    extension,
    folders,
    groups,
    invitations,
    logs,
    profile,
    snippets,
)

__all__ = [
    "snippets",
    "folders",
    "extension",
    "profile",
    "api_keys",
    "groups",
    "invitations",
    "logs",
    "admin",
]
