"""Domain operations for group invitations.

An invitation is addressed to an email and redeemed with its invite code
(share link) or from the invitee's inbox. Only pending invitations change
state; a pending invitation past ``expires_at`` is marked expired the first
time someone tries to use it.
"""

import logging
import uuid as uuid_pkg
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from codepocket.config import settings
from codepocket.core.cache import cache_key, invitation_cache
from codepocket.core.security import generate_invite_code
from codepocket.core.validation import validate_invite_email
from codepocket.domain.activity_operations import activity_ops
from codepocket.domain.group_member_operations import group_member_ops
from codepocket.domain.group_operations import group_ops
from codepocket.models.group import (
    ActivityType,
    Group,
    GroupInvitation,
    GroupMember,
    InvitationStatus,
)
from codepocket.models.user import User

logger = logging.getLogger(__name__)


class InvitationError(Exception):
    """Base class for invitation failures. The message is user-facing."""

    pass


class InvalidInviteEmailError(InvitationError):
    pass


class AlreadyMemberError(InvitationError):
    pass


class InvitationCooldownError(InvitationError):
    pass


class InvitationNotPendingError(InvitationError):
    pass


class InvitationExpiredError(InvitationError):
    pass


class InvitationEmailMismatchError(InvitationError):
    pass


class InvitationForbiddenError(InvitationError):
    pass


@dataclass
class InvitationWithGroup:
    invitation: GroupInvitation
    group: Group


def _is_expired(invitation: GroupInvitation, now: datetime) -> bool:
    return invitation.expires_at <= now


class InvitationOperations:
    """Send, list and answer group invitations."""

    async def get_by_id(
        self, db: AsyncSession, invitation_id: uuid_pkg.UUID
    ) -> GroupInvitation | None:
        statement = select(GroupInvitation).where(GroupInvitation.id == invitation_id)
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_code(self, db: AsyncSession, invite_code: str) -> GroupInvitation | None:
        statement = select(GroupInvitation).where(GroupInvitation.invite_code == invite_code)
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def list_pending_for_group(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
    ) -> list[GroupInvitation]:
        statement = (
            select(GroupInvitation)
            .where(
                GroupInvitation.group_id == group_id,
                GroupInvitation.status == InvitationStatus.PENDING.value,
            )
            .order_by(GroupInvitation.created_at.desc())  # type: ignore[attr-defined]
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def list_pending_for_email(
        self,
        db: AsyncSession,
        email: str,
    ) -> list[InvitationWithGroup]:
        """Unexpired pending invitations addressed to ``email``, newest first."""
        statement = (
            select(GroupInvitation, Group)
            .join(Group, Group.id == GroupInvitation.group_id)  # type: ignore[arg-type]
            .where(
                GroupInvitation.email == email.lower(),
                GroupInvitation.status == InvitationStatus.PENDING.value,
                GroupInvitation.expires_at > datetime.now(UTC),  # type: ignore[operator]
            )
            .order_by(GroupInvitation.created_at.desc())  # type: ignore[attr-defined]
        )
        result = await db.execute(statement)
        return [InvitationWithGroup(invitation=inv, group=group) for inv, group in result.all()]

    async def _is_member_by_email(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        email: str,
    ) -> bool:
        statement = (
            select(GroupMember.id)
            .join(User, User.id == GroupMember.user_id)  # type: ignore[arg-type]
            .where(GroupMember.group_id == group_id, func.lower(User.email) == email)
        )
        result = await db.execute(statement)
        return result.first() is not None

    async def send(
        self,
        db: AsyncSession,
        group_id: uuid_pkg.UUID,
        inviter_id: uuid_pkg.UUID,
        email: str,
    ) -> GroupInvitation:
        """Invite an email address to a group.

        A pending invitation to the same address is replaced once it is older
        than the resend cooldown.

        Raises:
            InvalidInviteEmailError: malformed address
            AlreadyMemberError: the address belongs to a member
            InvitationCooldownError: the previous invitation is too recent
        """
        email = (email or "").strip().lower()
        if not validate_invite_email(email):
            raise InvalidInviteEmailError("Invalid email address")

        if await self._is_member_by_email(db, group_id, email):
            raise AlreadyMemberError("User is already a member of this group")

        now = datetime.now(UTC)
        statement = select(GroupInvitation).where(
            GroupInvitation.group_id == group_id,
            GroupInvitation.email == email,
            GroupInvitation.status == InvitationStatus.PENDING.value,
        )
        result = await db.execute(statement)
        existing = result.scalars().first()
        if existing:
            cooldown = timedelta(seconds=settings.invitation_resend_cooldown_seconds)
            if now - existing.created_at < cooldown:
                raise InvitationCooldownError(
                    "Please wait 1 minute before sending another invitation to this email"
                )
            await db.delete(existing)
            await db.flush()

        invitation = GroupInvitation(
            group_id=group_id,
            inviter_id=inviter_id,
            email=email,
            invite_code=generate_invite_code(),
            status=InvitationStatus.PENDING.value,
            created_at=now,
            expires_at=now + timedelta(days=settings.invitation_expiry_days),
        )
        db.add(invitation)
        await db.flush()
        await activity_ops.record(
            db,
            group_id=group_id,
            activity_type=ActivityType.MEMBER_INVITED,
            actor_id=inviter_id,
            details={"email": email},
        )
        await db.refresh(invitation)

        self.invalidate_email(email)
        logger.info(f"Invitation sent to group {group_id} by {inviter_id}")
        return invitation

    async def cancel(
        self,
        db: AsyncSession,
        invitation: GroupInvitation,
        group: Group,
        actor_id: uuid_pkg.UUID,
    ) -> GroupInvitation:
        """Cancel a pending invitation. Allowed for the inviter and the group owner."""
        if actor_id not in (invitation.inviter_id, group.owner_id):
            raise InvitationForbiddenError(
                "Only the inviter or the group owner can cancel this invitation"
            )
        if invitation.status != InvitationStatus.PENDING.value:
            raise InvitationNotPendingError(f"Invitation has been {invitation.status}")

        return await self._set_status(db, invitation, InvitationStatus.CANCELLED)

    async def ensure_pending(self, db: AsyncSession, invitation: GroupInvitation) -> None:
        """Check that an invitation can still be answered.

        A pending invitation found past its expiry is marked expired and the
        change is committed before raising, so it survives the failed request.

        Raises:
            InvitationNotPendingError: already answered, cancelled or expired
            InvitationExpiredError: expired just now
        """
        if invitation.status != InvitationStatus.PENDING.value:
            raise InvitationNotPendingError(f"Invitation has been {invitation.status}")

        if _is_expired(invitation, datetime.now(UTC)):
            invitation.status = InvitationStatus.EXPIRED.value
            db.add(invitation)
            await db.commit()
            self.invalidate_email(invitation.email)
            raise InvitationExpiredError("Invitation has expired")

    def _check_recipient(self, invitation: GroupInvitation, user: User) -> None:
        if (user.email or "").lower() != invitation.email:
            raise InvitationEmailMismatchError(
                "This invitation was sent to a different email address"
            )

    async def accept(
        self,
        db: AsyncSession,
        invitation: GroupInvitation,
        user: User,
    ) -> GroupInvitation:
        """Join the group as ``user``.

        Raises:
            InvitationNotPendingError, InvitationExpiredError: see ensure_pending
            InvitationEmailMismatchError: the invitation is for another address
            AlreadyMemberError: the user is already in the group
        """
        await self.ensure_pending(db, invitation)
        self._check_recipient(invitation, user)

        if await group_ops.is_member(db, invitation.group_id, user.id):
            raise AlreadyMemberError("You are already a member of this group")

        await group_member_ops.add_member(
            db, invitation.group_id, user.id, via_invitation=invitation.id
        )
        logger.info(f"User {user.id} joined group {invitation.group_id} via invitation")
        return await self._set_status(db, invitation, InvitationStatus.ACCEPTED)

    async def decline(
        self,
        db: AsyncSession,
        invitation: GroupInvitation,
        user: User,
    ) -> GroupInvitation:
        await self.ensure_pending(db, invitation)
        self._check_recipient(invitation, user)
        return await self._set_status(db, invitation, InvitationStatus.DECLINED)

    async def _set_status(
        self,
        db: AsyncSession,
        invitation: GroupInvitation,
        new_status: InvitationStatus,
    ) -> GroupInvitation:
        invitation.status = new_status.value
        invitation.responded_at = datetime.now(UTC)
        db.add(invitation)
        await db.flush()
        await db.refresh(invitation)

        self.invalidate_email(invitation.email)
        return invitation

    def invalidate_email(self, email: str) -> None:
        invitation_cache.delete(cache_key("invitations", "email", email.lower()))


invitation_ops = InvitationOperations()
