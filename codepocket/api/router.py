from fastapi import APIRouter

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

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(snippets.router)
api_router.include_router(folders.router)
api_router.include_router(extension.router)
api_router.include_router(profile.router)
api_router.include_router(api_keys.router)
api_router.include_router(groups.router)
api_router.include_router(invitations.router)
api_router.include_router(logs.router)
api_router.include_router(admin.router)
