"""Groups API package.

Modules:
- helpers.py: access checks and serializers
- crud.py: group CRUD
- members.py: member listing and removal
- invitations.py: group-scoped invitations
- snippets.py: shared snippets
- activities.py: activity feed
"""

from fastapi import APIRouter

from codepocket.api.v1.groups.activities import list_activities
from codepocket.api.v1.groups.crud import (
    create_group,
    delete_group,
    get_group,
    list_groups,
    update_group,
)
from codepocket.api.v1.groups.invitations import (
    cancel_invitation,
    list_group_invitations,
    send_invitation,
)
from codepocket.api.v1.groups.members import list_members, remove_member
from codepocket.api.v1.groups.snippets import (
    create_group_snippet,
    list_group_snippets,
    share_snippet,
    unshare_snippet,
)

router = APIRouter(prefix="/groups", tags=["groups"])

# Group CRUD routes
router.add_api_route("", list_groups, methods=["GET"])
router.add_api_route("", create_group, methods=["POST"], status_code=201)
router.add_api_route("/{group_id}", get_group, methods=["GET"])
router.add_api_route("/{group_id}", update_group, methods=["PATCH"])
router.add_api_route("/{group_id}", delete_group, methods=["DELETE"], status_code=204)

# Member routes
router.add_api_route("/{group_id}/members", list_members, methods=["GET"])
router.add_api_route(
    "/{group_id}/members/{user_id}", remove_member, methods=["DELETE"], status_code=204
)

# Invitation routes
router.add_api_route("/{group_id}/invitations", list_group_invitations, methods=["GET"])
router.add_api_route(
    "/{group_id}/invitations", send_invitation, methods=["POST"], status_code=201
)
router.add_api_route(
    "/{group_id}/invitations/{invitation_id}", cancel_invitation, methods=["DELETE"]
)

# Shared snippet routes
router.add_api_route("/{group_id}/snippets", list_group_snippets, methods=["GET"])
router.add_api_route("/{group_id}/snippets", share_snippet, methods=["POST"], status_code=201)
router.add_api_route(
    "/{group_id}/snippets/new", create_group_snippet, methods=["POST"], status_code=201
)
router.add_api_route(
    "/{group_id}/snippets/{snippet_id}", unshare_snippet, methods=["DELETE"], status_code=204
)

# Activity feed
router.add_api_route("/{group_id}/activities", list_activities, methods=["GET"])

__all__ = ["router"]
